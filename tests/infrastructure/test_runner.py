"""Tests for FXRunner."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

from setupctl.infrastructure.config_store import RunnerProfile
from setupctl.infrastructure.runner import FXRunner

PROFILE = RunnerProfile(server_data_path="/srv/gta/", cfg_path="server.cfg")


class TestFXRunner:
    def test_build_command(self) -> None:
        runner = FXRunner("/opt/fx/run.sh", ["+set", "onesync", "on"])
        assert runner.build_command(PROFILE) == [
            "/opt/fx/run.sh",
            "+set",
            "onesync",
            "on",
            "+exec",
            "server.cfg",
        ]

    def test_unconfigured_profile(self) -> None:
        error = FXRunner("/opt/fx/run.sh").spawn(RunnerProfile())
        assert error is not None
        assert "not configured" in error

    def test_missing_executable_setting(self) -> None:
        error = FXRunner(None).spawn(PROFILE)
        assert error is not None
        assert "runner.fxserver_path" in error

    def test_executable_not_found(self, tmp_path: Path) -> None:
        error = FXRunner(str(tmp_path / "nope")).spawn(PROFILE)
        assert error is not None
        assert "not found" in error

    def test_spawn_success(self, tmp_path: Path) -> None:
        exe = tmp_path / "run.sh"
        exe.write_text("#!/bin/sh\n")
        runner = FXRunner(str(exe))
        with patch("setupctl.infrastructure.runner.subprocess.Popen") as popen:
            popen.return_value.poll.return_value = None
            assert runner.spawn(PROFILE) is None
            assert runner.spawn(PROFILE) == "The server is already running."
        popen.assert_called_once()
        _, kwargs = popen.call_args
        assert kwargs["cwd"] == "/srv/gta/"

    def test_spawn_oserror(self, tmp_path: Path) -> None:
        exe = tmp_path / "run.sh"
        exe.write_text("#!/bin/sh\n")
        with patch(
            "setupctl.infrastructure.runner.subprocess.Popen",
            MagicMock(side_effect=PermissionError(13, "Permission denied")),
        ):
            error = FXRunner(str(exe)).spawn(PROFILE)
        assert error is not None
        assert "Permission denied" in error
