"""Subcommand modules for setupctl.

Provides register_commands() which uses deferred imports to keep
``setupctl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the command groups and standalone commands on the root CLI group."""
    from setupctl.commands.save import save
    from setupctl.commands.serve import serve
    from setupctl.commands.status import status
    from setupctl.commands.validate import validate

    cli.add_command(validate)
    cli.add_command(save)
    cli.add_command(status)
    cli.add_command(serve)
