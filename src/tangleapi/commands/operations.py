"""operations — list the node operation catalog."""

from __future__ import annotations

import click

from tangleapi.commands._context import AppContext
from tangleapi.output.formatters import format_operations
from tangleapi.services.schema import OPERATIONS


@click.command()
@click.pass_obj
def operations(app: AppContext) -> None:
    """List every operation the service layer provides."""
    click.echo(format_operations(list(OPERATIONS.values()), json_output=app.settings.json_output))
