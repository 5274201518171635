"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``.  Builds the setup service lazily and centralizes
result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

import getpass
from typing import TYPE_CHECKING

import click

from setupctl.config.logging import configure_logging
from setupctl.output.formatters import OutputSettings, format_result
from setupctl.services.setup import ADMIN_PERMISSION, Actor

if TYPE_CHECKING:
    from setupctl.config.settings import SetupSettings
    from setupctl.services.result import ServiceResult
    from setupctl.services.setup import SetupService


def build_service(settings: SetupSettings) -> SetupService:
    """Wire a SetupService from *settings*.

    The setup gate is seeded from the config store, so a profile that was
    already saved keeps every later setup request blocked.
    """
    from setupctl.infrastructure.audit import AuditLog
    from setupctl.infrastructure.config_store import ConfigStore
    from setupctl.infrastructure.runner import FXRunner
    from setupctl.plugins.manager import PluginManager
    from setupctl.services.setup import SetupService
    from setupctl.services.state import SetupState

    store = ConfigStore(settings.config_file)
    plugins = PluginManager()
    plugins.discover_and_load(enabled=settings.plugins.enabled)
    return SetupService(
        SetupState.from_store(store),
        store,
        runner=FXRunner(settings.runner.fxserver_path, settings.runner.extra_args),
        audit=AuditLog(settings.audit_file),
        plugins=plugins,
    )


def local_actor() -> Actor:
    """The operator running the CLI, with full permissions."""
    try:
        username = getpass.getuser()
    except OSError:
        username = "cli"
    return Actor(username=username, permissions=(ADMIN_PERMISSION,))


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The service is built on first use so ``--help`` and ``--version``
    never touch the config store.
    """

    def __init__(self, settings: SetupSettings) -> None:
        self.settings = settings
        self._service: SetupService | None = None
        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def service(self) -> SetupService:
        """The setup service (created lazily on first access)."""
        if self._service is None:
            self._service = build_service(self.settings)
        return self._service

    @property
    def actor(self) -> Actor:
        return local_actor()

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
