"""Shared pytest fixtures and test helpers for setupctl tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from setupctl.domain.recipe import Recipe, parse_recipe
from setupctl.infrastructure.audit import AuditLog
from setupctl.infrastructure.config_store import ConfigStore, RunnerProfile
from setupctl.infrastructure.http import RecipeNetworkError
from setupctl.services.setup import ADMIN_PERMISSION, Actor, SetupService
from setupctl.services.state import SetupState

VALID_CFG = """\
endpoint_add_tcp "0.0.0.0:30120"
endpoint_add_udp "0.0.0.0:30120"
sv_hostname "test"
"""

VALID_RECIPE = """\
$engine: 2
name: PlumeESX2
author: Tabarra
description: A full-featured server.
tasks:
  - action: download_github
    src: https://github.com/citizenfx/cfx-server-data
    dest: ./
"""


class FakeRunner:
    """ProcessManager double that records spawn calls."""

    def __init__(self, error: str | None = None) -> None:
        self.error = error
        self.spawned: list[RunnerProfile] = []

    def spawn(self, profile: RunnerProfile) -> str | None:
        self.spawned.append(profile)
        return self.error


class FakeFetcher:
    """RecipeFetcher double serving canned bodies by URL."""

    def __init__(self, bodies: dict[str, str | Exception] | None = None) -> None:
        self.bodies = bodies or {}
        self.calls: list[str] = []

    def fetch(self, url: str) -> str:
        self.calls.append(url)
        body = self.bodies.get(url)
        if body is None:
            raise RecipeNetworkError("Connection failed: unknown host")
        if isinstance(body, Exception):
            raise body
        return body

    def fetch_recipe(self, url: str) -> Recipe:
        return parse_recipe(self.fetch(url))


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def admin() -> Actor:
    return Actor(username="admin", ip="10.0.0.5", permissions=(ADMIN_PERMISSION,))


@pytest.fixture
def server_data(tmp_path: Path) -> Path:
    """A valid server-data folder with ``resources/`` and ``server.cfg``."""
    root = tmp_path / "srv" / "gta"
    (root / "resources" / "maps").mkdir(parents=True)
    (root / "server.cfg").write_text(VALID_CFG, encoding="utf-8")
    return root


@pytest.fixture
def store(tmp_path: Path) -> ConfigStore:
    return ConfigStore(tmp_path / "profile" / "config.json")


@pytest.fixture
def audit(tmp_path: Path) -> AuditLog:
    return AuditLog(tmp_path / "profile" / "admin.log")


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher({"https://example.com/recipe.yaml": VALID_RECIPE})


@pytest.fixture
def state() -> SetupState:
    return SetupState()


@pytest.fixture
def service(
    state: SetupState,
    store: ConfigStore,
    runner: FakeRunner,
    audit: AuditLog,
    fetcher: FakeFetcher,
) -> SetupService:
    """SetupService wired to temp-dir storage and in-memory doubles."""
    return SetupService(
        state,
        store,
        runner=runner,
        audit=audit,
        fetcher=fetcher,  # type: ignore[arg-type]
        target_validator=lambda path: "Exists & is empty.",
    )

