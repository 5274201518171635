"""MCP tool definitions for the setup surface.

``setup_action`` exposes the same string-tagged actions the setup page
posts; the per-action tools are thin typed wrappers.  Each tool has a
``<name>_impl`` function testable without the mcp package.
``register_tools()`` wraps them with FastMCP decorators.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from setupctl.actions import handle_action
from setupctl.services.result import ServiceResult

if TYPE_CHECKING:
    from setupctl.services.setup import Actor, SetupService


def _to_mcp_response(result: ServiceResult) -> dict[str, Any]:
    """Convert a ServiceResult to an MCP-friendly dict."""
    response: dict[str, Any] = {
        "ok": result.ok,
        "op": result.op,
        "data": result.data,
    }
    if result.warnings:
        response["warnings"] = result.warnings
    if result.error is not None:
        response["error"] = {
            "code": result.error.code,
            "message": result.error.message,
            "detail": result.error.detail,
        }
    return response


# ---------------------------------------------------------------------------
# Action surface
# ---------------------------------------------------------------------------


def setup_action_impl(
    service: SetupService,
    actor: Actor,
    action: str,
    body: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Run one setup page action and return its payload plus status and code."""
    response = handle_action(service, action, body, actor=actor)
    payload: dict[str, Any] = {"status": response.status, **response.to_payload()}
    if response.code is not None:
        payload["code"] = response.code
    return payload


# ---------------------------------------------------------------------------
# Validation tools
# ---------------------------------------------------------------------------


def validate_recipe_url_impl(service: SetupService, recipe_url: str) -> dict[str, Any]:
    """Fetch and parse a deployment recipe."""
    return _to_mcp_response(service.validate_recipe_url(recipe_url))


def validate_deploy_path_impl(service: SetupService, deploy_path: str) -> dict[str, Any]:
    """Check a deployment target folder."""
    return _to_mcp_response(service.validate_local_deploy_path(deploy_path))


def validate_data_folder_impl(service: SetupService, data_folder: str) -> dict[str, Any]:
    """Check a server data folder."""
    return _to_mcp_response(service.validate_local_data_folder(data_folder))


def validate_cfg_file_impl(
    service: SetupService, data_folder: str, cfg_file: str
) -> dict[str, Any]:
    """Check a CFG file for its listening port."""
    return _to_mcp_response(service.validate_cfg_file(data_folder, cfg_file))


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


def register_tools(server: Any, service: SetupService, actor: Actor) -> None:
    """Register the setup tools on the FastMCP server."""

    @server.tool()  # type: ignore[untyped-decorator]
    def setup_action(action: str, body: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run a setup page action (validateRecipeURL, validateLocalDeployPath,
        validateLocalDataFolder, validateCFGFile, save)."""
        return setup_action_impl(service, actor, action, body)

    @server.tool()  # type: ignore[untyped-decorator]
    def validate_recipe_url(recipe_url: str) -> dict[str, Any]:
        """Download a deployment recipe and report its name."""
        return validate_recipe_url_impl(service, recipe_url)

    @server.tool()  # type: ignore[untyped-decorator]
    def validate_deploy_path(deploy_path: str) -> dict[str, Any]:
        """Check that a folder can receive a new deployment."""
        return validate_deploy_path_impl(service, deploy_path)

    @server.tool()  # type: ignore[untyped-decorator]
    def validate_data_folder(data_folder: str) -> dict[str, Any]:
        """Check that a folder is a server data folder."""
        return validate_data_folder_impl(service, data_folder)

    @server.tool()  # type: ignore[untyped-decorator]
    def validate_cfg_file(data_folder: str, cfg_file: str) -> dict[str, Any]:
        """Check that a CFG file declares the listening port."""
        return validate_cfg_file_impl(service, data_folder, cfg_file)
