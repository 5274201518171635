"""Durable configuration store: scoped profiles in one JSON file.

Three scopes exist: ``global`` (server identity), ``runner`` (where the
server-data folder and CFG file live) and ``deploy`` (the recipe committed
for deployment and its target folder).  Each scope is validated by a
frozen pydantic model before it is written.

Writes are atomic: the full document is written to a sibling temp file
and moved into place, so a failed save never leaves a half-written file.
Several scopes saved together go out in that single write.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)


class GlobalProfile(BaseModel):
    """``global`` scope."""

    model_config = {"frozen": True}

    server_name: str | None = None


class RunnerProfile(BaseModel):
    """``runner`` scope."""

    model_config = {"frozen": True}

    server_data_path: str | None = None
    cfg_path: str | None = None

    @property
    def is_configured(self) -> bool:
        return self.server_data_path is not None and self.cfg_path is not None


class DeployProfile(BaseModel):
    """``deploy`` scope: recipe text kept alongside its target folder."""

    model_config = {"frozen": True}

    target_path: str | None = None
    recipe_source: str | None = None

    @property
    def is_configured(self) -> bool:
        return self.target_path is not None and self.recipe_source is not None


SCOPES: dict[str, type[BaseModel]] = {
    "global": GlobalProfile,
    "runner": RunnerProfile,
    "deploy": DeployProfile,
}


class UnknownScopeError(KeyError):
    """Raised for a scope name not in :data:`SCOPES`."""


def _model_for(scope: str) -> type[BaseModel]:
    try:
        return SCOPES[scope]
    except KeyError:
        raise UnknownScopeError(scope) from None


class ConfigStore:
    """JSON-file backed profile store.

    Args:
        path: Location of the JSON document.  Created on first save.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def _read_document(self) -> dict[str, Any]:
        if not self.path.is_file():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.warning("Config store %s is unreadable; using defaults", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def get_scoped(self, scope: str) -> BaseModel:
        """Return the validated model for *scope* (defaults if absent or invalid)."""
        model_cls = _model_for(scope)
        raw = self._read_document().get(scope) or {}
        try:
            return model_cls.model_validate(raw)
        except ValidationError:
            logger.warning("Invalid %r profile in %s; using defaults", scope, self.path)
            return model_cls()

    def get_scoped_structure(self, scope: str) -> dict[str, Any]:
        """Return a mutable dict copy of *scope*, ready to be edited and saved."""
        return self.get_scoped(scope).model_dump()

    def get_global(self) -> GlobalProfile:
        profile = self.get_scoped("global")
        assert isinstance(profile, GlobalProfile)
        return profile

    def get_runner(self) -> RunnerProfile:
        profile = self.get_scoped("runner")
        assert isinstance(profile, RunnerProfile)
        return profile

    def get_deploy(self) -> DeployProfile:
        profile = self.get_scoped("deploy")
        assert isinstance(profile, DeployProfile)
        return profile

    def save_profile(self, scope: str, data: dict[str, Any]) -> bool:
        """Validate and persist *data* as the *scope* profile. Returns True on success."""
        return not self.save_profiles({scope: data})

    def save_profiles(self, profiles: dict[str, dict[str, Any]]) -> list[str]:
        """Validate every profile in *profiles* and persist them in one write.

        Returns the scopes that were not saved; empty means all were.  If
        any profile is invalid nothing is written and only the invalid
        scopes are listed.  An I/O failure lists every scope.  The previous
        file content is left intact either way.
        """
        validated: dict[str, BaseModel] = {}
        rejected: list[str] = []
        for scope, data in profiles.items():
            model_cls = _model_for(scope)
            try:
                validated[scope] = model_cls.model_validate(data)
            except ValidationError as exc:
                logger.warning("Rejected %r profile: %s", scope, exc)
                rejected.append(scope)
        if rejected:
            return rejected

        document = self._read_document()
        for scope, profile in validated.items():
            document[scope] = profile.model_dump(mode="json")
        try:
            self._write_document(document)
        except OSError as exc:
            logger.error("Failed to save %s profiles to %s: %s", list(profiles), self.path, exc)
            return list(profiles)
        logger.debug("Saved %s profiles to %s", list(profiles), self.path)
        return []

    def _write_document(self, document: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(document, handle, indent=2)
                handle.write("\n")
            os.replace(tmp_name, self.path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
