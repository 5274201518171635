"""Tests for the validate command group."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from setupctl.cli import cli


@pytest.fixture(autouse=True)
def _isolated_profile(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SETUPCTL_CONFIG", raising=False)
    profile = tmp_path / "profile"
    profile.mkdir()
    monkeypatch.chdir(profile)


class TestValidateDataFolder:
    def test_ok(self, cli_runner: CliRunner, server_data: Path) -> None:
        result = cli_runner.invoke(cli, ["validate", "data-folder", str(server_data)])
        assert result.exit_code == 0
        assert "OK" in result.output

    def test_suggestion_exits_1(self, cli_runner: CliRunner, server_data: Path) -> None:
        result = cli_runner.invoke(
            cli, ["--json", "validate", "data-folder", str(server_data / "resources" / "maps")]
        )
        assert result.exit_code == 1
        payload = json.loads(result.output)
        assert payload["error"]["code"] == "RECOVERABLE"
        assert payload["error"]["detail"]["suggestion"] == f"{server_data}/"


class TestValidateCfgFile:
    def test_reports_port(self, cli_runner: CliRunner, server_data: Path) -> None:
        result = cli_runner.invoke(
            cli,
            ["--json", "validate", "cfg-file", str(server_data), str(server_data / "server.cfg")],
        )
        assert result.exit_code == 0
        assert json.loads(result.output)["data"]["port"] == 30120


class TestValidateDeployPath:
    def test_spaces(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-q", "validate", "deploy-path", "/srv/my server"])
        assert result.exit_code == 1
        assert "cannot contain spaces" in result.output

    def test_missing_folder_ok(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        result = cli_runner.invoke(cli, ["validate", "deploy-path", str(tmp_path / "new")])
        assert result.exit_code == 0
        assert not (tmp_path / "new").exists()


class TestExamples:
    @pytest.mark.parametrize(
        "args",
        [
            ["validate", "--examples"],
            ["validate", "recipe-url", "--examples"],
            ["validate", "cfg-file", "--examples"],
            ["save", "local", "--examples"],
            ["save", "deploy", "--examples"],
            ["status", "--examples"],
        ],
    )
    def test_examples_flag(self, cli_runner: CliRunner, args: list[str]) -> None:
        result = cli_runner.invoke(cli, args)
        assert result.exit_code == 0
        assert "Examples for" in result.output
