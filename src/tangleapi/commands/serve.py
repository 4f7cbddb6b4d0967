"""serve — start the REST binding under uvicorn."""

from __future__ import annotations

import click

from tangleapi.commands._base import TangleCommand
from tangleapi.commands._context import AppContext


@click.command(
    cls=TangleCommand,
    examples="""\
  # Serve on the configured address ([api] host/port)
  tangleapi serve

  # Serve a snapshot on all interfaces
  TANGLEAPI_NODE__SNAPSHOT=snapshot.json tangleapi serve --host 0.0.0.0 --port 14265""",
)
@click.option("--host", default=None, help="Bind address (default: [api] host).")
@click.option("--port", default=None, type=int, help="Listen port (default: [api] port).")
@click.pass_obj
def serve(app: AppContext, host: str | None, port: int | None) -> None:
    """Serve the node operations over HTTP."""
    import uvicorn

    from tangleapi.bindings.rest import RestBinding, create_app
    from tangleapi.services.node import UnknownOperationError

    api = app.settings.api
    try:
        binding = RestBinding(app.adapter, operations=api.operations)
    except UnknownOperationError as exc:
        raise click.ClickException(str(exc)) from exc

    uvicorn.run(
        create_app(binding, prefix=api.prefix),
        host=host or api.host,
        port=port or api.port,
        log_config=None,
    )
