"""serve — start the MCP server (requires setupctl[mcp] extra)."""

from __future__ import annotations

import click

from setupctl.commands._base import SetupCommand
from setupctl.commands._context import AppContext


@click.command(
    cls=SetupCommand,
    examples="""\
  # Start the MCP server (stdio transport, default)
  setupctl serve

  # Streamable HTTP on custom host/port
  setupctl serve --transport streamable-http --host 0.0.0.0 --port 9000""",
)
@click.option(
    "--transport",
    default="stdio",
    type=click.Choice(["stdio", "sse", "streamable-http"]),
    help="MCP transport protocol.",
)
@click.option("--host", default="127.0.0.1", help="Bind address (HTTP transports only).")
@click.option("--port", default=8000, type=int, help="Listen port (HTTP transports only).")
@click.pass_obj
def serve(app: AppContext, transport: str, host: str, port: int) -> None:
    """Start the MCP server (requires setupctl[mcp] extra)."""
    from setupctl.mcp import server as mcp_server

    if not mcp_server.mcp_available:
        click.echo("MCP not installed. Install with: pip install setupctl[mcp]", err=True)
        raise SystemExit(1)

    server = mcp_server.create_server(settings=app.settings, host=host, port=port)
    server.run(transport=transport)
