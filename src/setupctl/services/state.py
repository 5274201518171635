"""SetupState: the one-time setup gate, injected into SetupService.

Setup is a non-reentrant handshake: once a decision is committed (an
existing data folder saved, or a recipe deployment activated) every
further setup request is refused.

INVARIANT: At most one SetupDecision is ever committed per state object.
INVARIANT: At most one save runs at a time; the slot is taken with an
atomic check-and-set and released when the save finishes.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from collections.abc import Iterator

    from setupctl.infrastructure.config_store import ConfigStore
    from setupctl.infrastructure.deployer import Deployer


class LocalDecision(BaseModel):
    """An existing server-data folder was chosen."""

    model_config = {"frozen": True}

    mode: Literal["local"] = "local"
    server_name: str
    data_folder: str
    cfg_file: str


class DeployDecision(BaseModel):
    """A remote recipe will be deployed into *target_path*."""

    model_config = {"frozen": True}

    mode: Literal["deploy"] = "deploy"
    server_name: str
    target_path: str
    recipe_source: str = Field(repr=False)


SetupDecision = LocalDecision | DeployDecision


class AlreadyConfiguredError(RuntimeError):
    """Setup was already committed, or another save holds the slot."""


class SetupState:
    """Lock-protected setup gate holding the committed decision and deployer."""

    def __init__(self, decision: SetupDecision | None = None) -> None:
        self._lock = threading.Lock()
        self._decision: SetupDecision | None = decision
        self._deployer: Deployer | None = None
        self._claimed = False

    @classmethod
    def from_store(cls, store: ConfigStore) -> SetupState:
        """Seed the gate from a previously persisted runner or deploy profile."""
        server_name = store.get_global().server_name or ""
        runner = store.get_runner()
        if runner.server_data_path is not None and runner.cfg_path is not None:
            return cls(
                LocalDecision(
                    server_name=server_name,
                    data_folder=runner.server_data_path,
                    cfg_file=runner.cfg_path,
                )
            )
        deploy = store.get_deploy()
        if deploy.target_path is not None and deploy.recipe_source is not None:
            return cls(
                DeployDecision(
                    server_name=server_name,
                    target_path=deploy.target_path,
                    recipe_source=deploy.recipe_source,
                )
            )
        return cls()

    @property
    def is_configured(self) -> bool:
        with self._lock:
            return self._is_configured_locked()

    @property
    def decision(self) -> SetupDecision | None:
        return self._decision

    @property
    def deployer(self) -> Deployer | None:
        return self._deployer

    def _is_configured_locked(self) -> bool:
        return self._decision is not None or self._deployer is not None

    def try_claim(self) -> bool:
        """Take the save slot. False if configured or another save holds it."""
        with self._lock:
            if self._claimed or self._is_configured_locked():
                return False
            self._claimed = True
            return True

    def release(self) -> None:
        with self._lock:
            self._claimed = False

    @contextmanager
    def claim(self) -> Iterator[None]:
        """Hold the save slot for the duration of the block.

        Raises :class:`AlreadyConfiguredError` when the slot is unavailable.
        """
        if not self.try_claim():
            raise AlreadyConfiguredError("Setup was already completed or is in progress.")
        try:
            yield
        finally:
            self.release()

    def commit_local(self, decision: LocalDecision) -> None:
        with self._lock:
            self._commit_locked(decision)

    def commit_deploy(self, decision: DeployDecision, deployer: Deployer) -> None:
        with self._lock:
            self._commit_locked(decision)
            self._deployer = deployer

    def _commit_locked(self, decision: SetupDecision) -> None:
        if not self._claimed:
            raise RuntimeError("commit requires the save slot to be claimed")
        if self._is_configured_locked():
            raise AlreadyConfiguredError("A setup decision was already committed.")
        self._decision = decision
