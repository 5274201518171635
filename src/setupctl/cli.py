"""setupctl entry point: global flags, profile selection, command registration."""

from __future__ import annotations

from pathlib import Path

import click

from setupctl import __version__
from setupctl.commands import register_commands
from setupctl.commands._base import SetupGroup
from setupctl.commands._context import AppContext
from setupctl.config.settings import SetupSettings


@click.group(
    cls=SetupGroup,
    invoke_without_command=True,
    examples="""\
  # Check a folder, then save it and start the server
  setupctl validate data-folder /srv/fxserver/data
  setupctl save local --name "My Server" --data-folder /srv/fxserver/data --cfg-file server.cfg

  # Work against another profile, with machine-readable output
  setupctl -p /srv/profiles/second --json status""",
)
@click.version_option(version=__version__, prog_name="setupctl")
@click.option("--json", "json_output", is_flag=True, help="Print results as JSON.")
@click.option("-q", "--quiet", is_flag=True, help="One line per result.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging and full error detail.")
@click.option("--log-json", is_flag=True, help="Write logs to stderr as JSON lines.")
@click.option("-c", "--config", "config_path", default=None, help="Path to setupctl.toml.")
@click.option(
    "-p",
    "--profile-root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Folder holding config.json and admin.log (default: next to setupctl.toml, or cwd).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    profile_root: Path | None,
) -> None:
    """setupctl: first-run setup for an FXServer host.

    Validate a server-data folder, CFG file or deployment recipe, then
    save the one-time setup decision.
    """
    settings = SetupSettings.from_cli(
        config_path=config_path,
        profile_root=profile_root,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
