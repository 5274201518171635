"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, setupctl.toml only contains
overrides.  A fresh install needs no config file at all.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

# --- setupctl.toml sections ---


class StorageConfig(BaseModel):
    """[storage] section.

    Relative paths are resolved against the profile root.
    """

    model_config = {"frozen": True}

    config_file: str = "config.json"
    audit_file: str = "admin.log"


class RunnerConfig(BaseModel):
    """[runner] section."""

    model_config = {"frozen": True}

    fxserver_path: str | None = None
    extra_args: list[str] = Field(default_factory=list)


class PluginsConfig(BaseModel):
    """[plugins] section.

    ``enabled = None`` keeps every discovered plugin.
    """

    model_config = {"frozen": True}

    enabled: list[str] | None = None
