"""Pluggy hook specifications for setup lifecycle events.

Hooks fire once, after a setup decision has been persisted.  They run
synchronously and their failures are reported as warnings.
"""

from __future__ import annotations

import pluggy

PROJECT_NAME = "setupctl"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class SetupHookSpec:
    """Hook specifications for the setupctl plugin system."""

    @hookspec
    def post_setup_local(
        self,
        server_name: str,
        data_folder: str,
        cfg_file: str,
    ) -> None:
        """Called after an existing server-data folder was saved."""

    @hookspec
    def post_setup_deploy(
        self,
        server_name: str,
        target_path: str,
        recipe_name: str,
    ) -> None:
        """Called after a recipe deployment was activated."""
