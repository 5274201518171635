"""FastMCP server setup.

Optional extra — guarded behind try/except ImportError.
Transport: stdio default, streamable HTTP optional.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

mcp_available = False
_FastMCP: Any = None

try:
    from mcp.server.fastmcp import FastMCP as _FastMCP  # type: ignore[no-redef,import-not-found]

    mcp_available = True
except ImportError:
    pass

if TYPE_CHECKING:
    from setupctl.config.settings import SetupSettings

__all__ = ["create_server", "mcp_available"]


def create_server(
    *,
    settings: SetupSettings | None = None,
    host: str = "127.0.0.1",
    port: int = 8000,
) -> Any:
    """Create and configure the MCP server.

    Builds the setup service from *settings* (or settings discovered from
    the CWD) and registers the tools and resources.  The connected client
    acts as the local operator.

    Raises RuntimeError if the mcp extra is not installed.
    """
    if not mcp_available or _FastMCP is None:
        msg = "MCP extra not installed. Install with: pip install setupctl[mcp]"
        raise RuntimeError(msg)

    from setupctl.commands._context import build_service, local_actor
    from setupctl.config.settings import SetupSettings
    from setupctl.mcp.resources import register_resources
    from setupctl.mcp.tools import register_tools

    if settings is None:
        settings = SetupSettings.from_cli()
    service = build_service(settings)

    server = _FastMCP("setupctl", host=host, port=port)

    register_tools(server, service, local_actor())
    register_resources(server, service)

    return server
