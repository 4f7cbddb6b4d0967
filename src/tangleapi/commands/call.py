"""call — run one node operation through the CLI binding."""

from __future__ import annotations

import click

from tangleapi.commands._base import TangleCommand
from tangleapi.commands._context import AppContext
from tangleapi.services.schema import OPERATIONS


@click.command(
    cls=TangleCommand,
    examples="""\
  # Node status
  tangleapi call node_info

  # Look up a transaction (JSON body, field names in camelCase)
  tangleapi call transaction_by_hash --data '{"hash": "<64 hex chars>"}'

  # Submit a bundle read from stdin, print the raw envelope
  cat bundle.json | tangleapi --json call submit_transactions --data -""",
)
@click.argument("operation", type=click.Choice(sorted(OPERATIONS)))
@click.option(
    "-d",
    "--data",
    default=None,
    help="Request body as JSON text ('-' reads from stdin).",
)
@click.pass_obj
def call(app: AppContext, operation: str, data: str | None) -> None:
    """Run OPERATION against the configured node."""
    from tangleapi.bindings.cli import CliBinding

    if data == "-":
        data = click.get_text_stream("stdin").read()
    binding = CliBinding(app.adapter)
    app.emit(binding.invoke(operation, data))
