"""Process management for the managed FXServer.

The runner only knows how to start the server from a persisted runner
profile.  Supervision, restarts and console capture belong to the
process that takes over after setup.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Protocol

from setupctl.infrastructure.config_store import RunnerProfile

logger = logging.getLogger(__name__)


class ProcessManager(Protocol):
    """Anything that can start the server from a runner profile."""

    def spawn(self, profile: RunnerProfile) -> str | None:
        """Start the server. Returns None on success or an error message."""
        ...


class FXRunner:
    """Start FXServer as a child process: ``<fxserver> [args] +exec <cfg>``.

    Args:
        fxserver_path: Executable path (or a name resolved on ``PATH``).
        extra_args: Arguments placed before ``+exec``.
    """

    def __init__(self, fxserver_path: str | None, extra_args: list[str] | None = None) -> None:
        self.fxserver_path = fxserver_path
        self.extra_args = list(extra_args or [])
        self.process: subprocess.Popen[bytes] | None = None

    def build_command(self, profile: RunnerProfile) -> list[str]:
        assert self.fxserver_path is not None
        assert profile.cfg_path is not None
        return [self.fxserver_path, *self.extra_args, "+exec", profile.cfg_path]

    def spawn(self, profile: RunnerProfile) -> str | None:
        if self.process is not None and self.process.poll() is None:
            return "The server is already running."
        if not profile.is_configured:
            return "The server data folder and CFG file are not configured."
        if not self.fxserver_path:
            return "No FXServer executable configured (set runner.fxserver_path)."
        if shutil.which(self.fxserver_path) is None and not Path(self.fxserver_path).is_file():
            return f"FXServer executable not found: {self.fxserver_path}"

        command = self.build_command(profile)
        logger.info("Spawning server: %s", " ".join(command))
        try:
            self.process = subprocess.Popen(  # noqa: S603
                command,
                cwd=profile.server_data_path,
                stdin=subprocess.DEVNULL,
            )
        except OSError as exc:
            logger.error("Failed to spawn server: %s", exc)
            return str(exc)
        return None
