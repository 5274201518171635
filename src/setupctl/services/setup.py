"""SetupService: first-run validation and the one-time setup commit.

Four validation operations are read-only and may run concurrently and
repeatedly.  The two save operations are the only writers; they claim the
single save slot on :class:`~setupctl.services.state.SetupState`, re-run
the full validation themselves (the earlier validation calls carry no
state), persist the decision, and hand off to the runner or the deployer.

Pipelines::

    save_local:  CLAIM -> VALIDATE FOLDER -> VALIDATE CFG -> PERSIST global+runner
                 -> COMMIT -> AUDIT -> HOOK -> SPAWN
    save_deploy: CLAIM -> FETCH RECIPE -> BUILD DEPLOYER -> PERSIST global+deploy
                 -> COMMIT + ACTIVATE DEPLOYER -> AUDIT -> HOOK
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import BaseModel

from setupctl.domain.cfg import CfgContentError, extract_port
from setupctl.domain.paths import InvalidPathError, normalize, normalize_folder
from setupctl.domain.recipe import RecipeFormatError
from setupctl.infrastructure.deployer import Deployer, TargetPathError, validate_target_path
from setupctl.infrastructure.filesystem import (
    CfgPathError,
    LocateStatus,
    has_resources,
    locate_data_folder,
    lookup_cfg_file,
    read_cfg_file,
    resolve_cfg_path,
    runner_cfg_path,
)
from setupctl.infrastructure.http import RecipeFetcher, RecipeNetworkError
from setupctl.services.base import BaseService
from setupctl.services.result import ErrorCode, ServiceResult
from setupctl.services.state import AlreadyConfiguredError, DeployDecision, LocalDecision

if TYPE_CHECKING:
    from setupctl.infrastructure.audit import AuditLog
    from setupctl.infrastructure.config_store import ConfigStore
    from setupctl.infrastructure.runner import ProcessManager
    from setupctl.plugins.manager import PluginManager
    from setupctl.services.state import SetupState

log = structlog.get_logger(__name__)

ADMIN_PERMISSION = "all_permissions"
ALREADY_CONFIGURED_MESSAGE = "This server was already configured. Please refresh the page."
SAVE_ERROR_MESSAGE = "<strong>Error saving the configuration file.</strong>"


class Actor(BaseModel):
    """Who is driving the setup (used for permission checks and the audit log)."""

    model_config = {"frozen": True}

    username: str
    ip: str = "127.0.0.1"
    permissions: tuple[str, ...] = ()

    def has_permission(self, permission: str) -> bool:
        return ADMIN_PERMISSION in self.permissions or permission in self.permissions

    @property
    def tag(self) -> str:
        return f"[{self.ip}][{self.username}]"


@dataclass
class PersistOutcome:
    """Per-scope results of a multi-profile save.

    All scopes go out in one store write, so either every scope is saved or
    none is.  The save counts as done only when every scope succeeded.
    """

    results: dict[str, bool] = field(default_factory=dict)

    @classmethod
    def collect(cls, store: ConfigStore, profiles: dict[str, dict[str, Any]]) -> PersistOutcome:
        """Save every profile in one write and record each scope's result."""
        failed = set(store.save_profiles(profiles))
        return cls({scope: scope not in failed for scope in profiles})

    @property
    def ok(self) -> bool:
        return bool(self.results) and all(self.results.values())

    @property
    def failed_scopes(self) -> list[str]:
        return [scope for scope, saved in self.results.items() if not saved]


DeployerFactory = Callable[[str, str], Deployer]
TargetValidator = Callable[[str], str]


class SetupService(BaseService):
    """Validates setup input and commits the one-time setup decision."""

    def __init__(
        self,
        state: SetupState,
        store: ConfigStore,
        *,
        runner: ProcessManager,
        audit: AuditLog | None = None,
        fetcher: RecipeFetcher | None = None,
        deployer_factory: DeployerFactory = Deployer,
        target_validator: TargetValidator = validate_target_path,
        plugins: PluginManager | None = None,
    ) -> None:
        super().__init__(plugins=plugins)
        self._state = state
        self._store = store
        self._runner = runner
        self._audit = audit
        self._fetcher = fetcher or RecipeFetcher()
        self._deployer_factory = deployer_factory
        self._target_validator = target_validator

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def is_configured(self) -> bool:
        """Whether the one-time setup was already committed."""
        return self._state.is_configured

    def _guard(self, op: str) -> ServiceResult | None:
        if self._state.is_configured:
            return self._already_configured(op)
        return None

    @staticmethod
    def _already_configured(op: str) -> ServiceResult:
        return ServiceResult.failure(op, ErrorCode.ALREADY_CONFIGURED, ALREADY_CONFIGURED_MESSAGE)

    def _audit_append(self, message: str, **fields: Any) -> None:
        if self._audit is not None:
            self._audit.append(message, **fields)

    def status(self) -> ServiceResult:
        """Report whether setup is done and which path was taken."""
        decision = self._state.decision
        deployer = self._state.deployer
        data: dict[str, Any] = {"configured": self._state.is_configured}
        if decision is not None:
            data["mode"] = decision.mode
            data["server_name"] = decision.server_name
            if isinstance(decision, DeployDecision):
                data["target_path"] = decision.target_path
        if deployer is not None:
            data["deployer_step"] = deployer.step.value
            data["recipe_name"] = deployer.recipe.name
        return ServiceResult(ok=True, op="status", data=data)

    # ------------------------------------------------------------------
    # Validation (read-only)
    # ------------------------------------------------------------------

    def validate_recipe_url(self, recipe_url: str) -> ServiceResult:
        """Fetch and parse a remote recipe, returning its declared name."""
        op = "validate_recipe_url"
        if (blocked := self._guard(op)) is not None:
            return blocked

        try:
            recipe = self._fetcher.fetch_recipe(recipe_url)
        except RecipeNetworkError as exc:
            return ServiceResult.failure(op, ErrorCode.NETWORK_ERROR, f"Recipe error: {exc}")
        except RecipeFormatError as exc:
            return ServiceResult.failure(op, ErrorCode.FORMAT_ERROR, f"Recipe error: {exc}")

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "name": recipe.name,
                "author": recipe.author,
                "description": recipe.description,
                "tasks": len(recipe.tasks),
            },
        )

    def validate_local_deploy_path(self, deploy_path: str) -> ServiceResult:
        """Pre-flight check of a deployment destination folder."""
        op = "validate_deploy_path"
        if (blocked := self._guard(op)) is not None:
            return blocked

        try:
            path = normalize(deploy_path)
            message = self._target_validator(path)
        except (InvalidPathError, TargetPathError) as exc:
            return ServiceResult.failure(op, ErrorCode.INVALID_PATH, str(exc))

        return ServiceResult(ok=True, op=op, data={"path": path, "message": message})

    def validate_local_data_folder(self, data_folder: str) -> ServiceResult:
        """Check a server-data folder, suggesting a nearby one when it is off."""
        op = "validate_data_folder"
        if (blocked := self._guard(op)) is not None:
            return blocked

        try:
            folder = normalize_folder(data_folder)
        except InvalidPathError as exc:
            return ServiceResult.failure(op, ErrorCode.INVALID_PATH, str(exc))

        outcome = locate_data_folder(folder)
        if outcome.status is LocateStatus.OK:
            return ServiceResult(ok=True, op=op, data={"data_folder": folder})
        if outcome.status is LocateStatus.RECOVERABLE:
            assert outcome.suggestion is not None
            return ServiceResult.failure(
                op,
                ErrorCode.RECOVERABLE,
                outcome.suggestion.message,
                suggestion=outcome.suggestion.suggested_path,
            )
        return ServiceResult.failure(
            op,
            ErrorCode.NOT_FOUND,
            outcome.reason or "",
            unreadable=list(outcome.unreadable),
        )

    def validate_cfg_file(self, data_folder: str, cfg_file: str) -> ServiceResult:
        """Resolve, read, and check the CFG file for a listening port."""
        op = "validate_cfg_file"
        if (blocked := self._guard(op)) is not None:
            return blocked

        try:
            folder = normalize_folder(data_folder)
            cfg_ref = normalize(cfg_file)
        except InvalidPathError as exc:
            return ServiceResult.failure(op, ErrorCode.INVALID_PATH, str(exc))

        lookup = lookup_cfg_file(folder, cfg_ref)
        if lookup.suggestion is not None:
            return ServiceResult.failure(
                op,
                ErrorCode.RECOVERABLE,
                lookup.suggestion.message,
                suggestion=lookup.suggestion.suggested_path,
            )
        if lookup.text is None:
            return ServiceResult.failure(op, ErrorCode.NOT_FOUND, lookup.error or "")

        try:
            port = extract_port(lookup.text)
        except CfgContentError as exc:
            message = f"The file path is correct, but: <br>\n {exc}."
            return ServiceResult.failure(op, ErrorCode.FORMAT_ERROR, message)

        return ServiceResult(ok=True, op=op, data={"cfg_file": lookup.path, "port": port})

    # ------------------------------------------------------------------
    # Save (the single critical section)
    # ------------------------------------------------------------------

    def save_local(
        self,
        name: str,
        data_folder: str,
        cfg_file: str,
        *,
        actor: Actor,
    ) -> ServiceResult:
        """Persist an existing install and start the server."""
        op = "save_local"
        if (blocked := self._guard(op)) is not None:
            return blocked

        try:
            folder = normalize_folder(data_folder)
            cfg_ref = normalize(cfg_file)
        except InvalidPathError:
            return ServiceResult.failure(
                op, ErrorCode.INVALID_PATH, "The paths cannot contain spaces."
            )

        try:
            with self._state.claim():
                return self._save_local_claimed(op, name.strip(), folder, cfg_ref, actor)
        except AlreadyConfiguredError:
            return self._already_configured(op)

    def _save_local_claimed(
        self,
        op: str,
        name: str,
        folder: str,
        cfg_ref: str,
        actor: Actor,
    ) -> ServiceResult:
        if not has_resources(folder):
            return ServiceResult.failure(
                op, ErrorCode.NOT_FOUND, "<strong>Server Data Folder error:</strong> Invalid path"
            )

        try:
            resolved = resolve_cfg_path(folder, cfg_ref)
            port = extract_port(read_cfg_file(resolved))
        except CfgPathError as exc:
            return ServiceResult.failure(
                op, ErrorCode.NOT_FOUND, f"<strong>CFG File error:</strong> {exc}"
            )
        except CfgContentError as exc:
            return ServiceResult.failure(
                op, ErrorCode.FORMAT_ERROR, f"<strong>CFG File error:</strong> {exc}"
            )

        cfg_path = runner_cfg_path(cfg_ref, resolved)

        global_profile = self._store.get_scoped_structure("global")
        global_profile["server_name"] = name
        runner_profile = self._store.get_scoped_structure("runner")
        runner_profile["server_data_path"] = folder
        runner_profile["cfg_path"] = cfg_path
        outcome = PersistOutcome.collect(
            self._store, {"global": global_profile, "runner": runner_profile}
        )

        if not outcome.ok:
            message = f"{actor.tag} Error changing global/runner settings via setup."
            log.warning("setup.persist_failed", op=op, failed_scopes=outcome.failed_scopes)
            self._audit_append(message, failed_scopes=outcome.failed_scopes)
            return ServiceResult.failure(
                op,
                ErrorCode.PERSISTENCE_ERROR,
                SAVE_ERROR_MESSAGE,
                failed_scopes=outcome.failed_scopes,
            )

        decision = LocalDecision(server_name=name, data_folder=folder, cfg_file=cfg_path)
        self._state.commit_local(decision)
        log.info("setup.local_saved", server_name=name, data_folder=folder, cfg_file=cfg_path)
        self._audit_append(f"{actor.tag} Changing global/runner settings via setup.")

        warnings: list[str] = []
        self._dispatch_event(
            "post_setup_local",
            {"server_name": name, "data_folder": folder, "cfg_file": cfg_path},
            warnings,
        )

        spawn_error = self._runner.spawn(self._store.get_runner())
        if spawn_error is not None:
            log.warning("setup.spawn_failed", error=spawn_error)
            self._audit_append(f"{actor.tag} Failed to start server after setup: {spawn_error}")
            return ServiceResult.failure(
                op,
                ErrorCode.SPAWN_ERROR,
                f"Failed to start server with error: <br>\n{spawn_error}",
                warnings=warnings,
            )

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "server_name": name,
                "data_folder": folder,
                "cfg_file": cfg_path,
                "port": port,
            },
            warnings=warnings,
        )

    def save_deploy(
        self,
        name: str,
        recipe_url: str,
        target_path: str,
        *,
        actor: Actor,
    ) -> ServiceResult:
        """Fetch a recipe, persist the server name, and activate the deployer."""
        op = "save_deploy"
        if (blocked := self._guard(op)) is not None:
            return blocked

        try:
            target = normalize_folder(target_path)
        except InvalidPathError as exc:
            return ServiceResult.failure(op, ErrorCode.INVALID_PATH, str(exc))

        try:
            with self._state.claim():
                return self._save_deploy_claimed(op, name.strip(), recipe_url, target, actor)
        except AlreadyConfiguredError:
            return self._already_configured(op)

    def _save_deploy_claimed(
        self,
        op: str,
        name: str,
        recipe_url: str,
        target: str,
        actor: Actor,
    ) -> ServiceResult:
        try:
            recipe_source = self._fetcher.fetch(recipe_url)
            deployer = self._deployer_factory(recipe_source, target)
        except RecipeNetworkError as exc:
            return ServiceResult.failure(op, ErrorCode.NETWORK_ERROR, f"Recipe error: {exc}")
        except RecipeFormatError as exc:
            return ServiceResult.failure(op, ErrorCode.FORMAT_ERROR, f"Recipe error: {exc}")

        global_profile = self._store.get_scoped_structure("global")
        global_profile["server_name"] = name
        deploy_profile = {"target_path": target, "recipe_source": recipe_source}
        outcome = PersistOutcome.collect(
            self._store, {"global": global_profile, "deploy": deploy_profile}
        )

        # The deployer only becomes active once the decision is persisted.
        if not outcome.ok:
            log.warning("setup.persist_failed", op=op, failed_scopes=outcome.failed_scopes)
            self._audit_append(
                f"{actor.tag} Error changing global/deploy settings via setup.",
                failed_scopes=outcome.failed_scopes,
            )
            return ServiceResult.failure(
                op,
                ErrorCode.PERSISTENCE_ERROR,
                SAVE_ERROR_MESSAGE,
                failed_scopes=outcome.failed_scopes,
            )

        decision = DeployDecision(server_name=name, target_path=target, recipe_source=recipe_source)
        self._state.commit_deploy(decision, deployer)
        recipe_name = deployer.recipe.name
        log.info(
            "setup.deployer_started", server_name=name, target_path=target, recipe=recipe_name
        )
        self._audit_append(
            f"{actor.tag} Changing global/deploy settings via setup and started deployer."
        )

        warnings: list[str] = []
        self._dispatch_event(
            "post_setup_deploy",
            {"server_name": name, "target_path": target, "recipe_name": recipe_name},
            warnings,
        )

        return ServiceResult(
            ok=True,
            op=op,
            data={"server_name": name, "target_path": target, "recipe_name": recipe_name},
            warnings=warnings,
        )
