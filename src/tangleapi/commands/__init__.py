"""Subcommand modules for tangleapi.

Provides register_commands(), which imports each command module only
when the CLI is assembled.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from tangleapi.commands.call import call
    from tangleapi.commands.mcp_cmd import mcp_cmd
    from tangleapi.commands.operations import operations
    from tangleapi.commands.serve import serve

    cli.add_command(operations)
    cli.add_command(call)
    cli.add_command(serve)
    cli.add_command(mcp_cmd)
