"""Plugin discovery, registration, and hook dispatch."""

from __future__ import annotations

import inspect
import logging
from typing import Any

import pluggy

from setupctl.plugins.hookspecs import PROJECT_NAME, SetupHookSpec

ENTRY_POINT_GROUP = "setupctl.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin discovery, loading, and hook dispatch."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(SetupHookSpec)

    def discover_and_load(self, *, enabled: list[str] | None = None) -> list[str]:
        """Load plugins from the ``setupctl.plugins`` entry-point group.

        When *enabled* is given, plugins whose names are not listed are
        unregistered again.  Returns the names of the registered plugins.
        """
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._instantiate_classes()
        if enabled is not None:
            for name in self.list_plugin_names():
                if name not in enabled:
                    self._pm.unregister(name=name)
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def list_plugin_names(self) -> list[str]:
        """Return names of all registered plugins."""
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    def dispatch(self, hook_name: str, payload: dict[str, Any]) -> None:
        """Call *hook_name* on every plugin with *payload* as keyword args."""
        hook = getattr(self._pm.hook, hook_name)
        hook(**payload)

    def _instantiate_classes(self) -> None:
        """Replace plugin classes registered by entry points with instances.

        Hook calls against a class object leave ``self`` unbound.
        """
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin):
                continue
            name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)
            try:
                instance = plugin()
            except Exception:
                logger.warning("Failed to instantiate plugin %s", name, exc_info=True)
                continue
            self._pm.register(instance, name=name)
