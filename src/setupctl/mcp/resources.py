"""MCP resource definitions.

URIs: setupctl://status.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from setupctl.services.setup import SetupService


def status_impl(service: SetupService) -> dict[str, Any]:
    """Return whether setup is done and which path was taken."""
    return service.status().data


def register_resources(server: Any, service: SetupService) -> None:
    """Register the MCP resources on the FastMCP server."""

    @server.resource("setupctl://status")  # type: ignore[untyped-decorator]
    def status_resource() -> str:
        """Current setup status."""
        return json.dumps(status_impl(service), indent=2)
