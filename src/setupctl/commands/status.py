"""status — show whether the setup was already saved."""

from __future__ import annotations

import click

from setupctl.commands._base import SetupCommand
from setupctl.commands._context import AppContext


@click.command(
    cls=SetupCommand,
    examples="""\
  setupctl status
  setupctl --json status""",
)
@click.pass_obj
def status(app: AppContext) -> None:
    """Show whether the setup was already saved."""
    app.emit(app.service.status())
