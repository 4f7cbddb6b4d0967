"""mcp — start the MCP binding (requires tangleapi[mcp] extra)."""

from __future__ import annotations

import click

from tangleapi.commands._base import TangleCommand
from tangleapi.commands._context import AppContext


@click.command(
    "mcp",
    cls=TangleCommand,
    examples="""\
  # Start the MCP server (stdio transport, default)
  tangleapi mcp

  # Streamable HTTP on custom host/port
  tangleapi mcp --transport streamable-http --host 0.0.0.0 --port 9000""",
)
@click.option(
    "--transport",
    default="stdio",
    type=click.Choice(["stdio", "sse", "streamable-http"]),
    help="MCP transport protocol.",
)
@click.option("--host", default=None, help="Bind address (HTTP transports only).")
@click.option("--port", default=None, type=int, help="Listen port (HTTP transports only).")
@click.pass_obj
def mcp_cmd(app: AppContext, transport: str, host: str | None, port: int | None) -> None:
    """Serve read-only node tools over MCP."""
    from tangleapi.bindings.mcp import McpBinding, create_server, mcp_available
    from tangleapi.services.node import UnknownOperationError

    if not mcp_available:
        click.echo("MCP not installed. Install with: pip install tangleapi[mcp]", err=True)
        raise SystemExit(1)

    cfg = app.settings.mcp
    try:
        binding = McpBinding(app.adapter, operations=cfg.operations)
    except UnknownOperationError as exc:
        raise click.ClickException(str(exc)) from exc

    server = create_server(binding, host=host or cfg.host, port=port or cfg.port)
    server.run(transport=transport)
