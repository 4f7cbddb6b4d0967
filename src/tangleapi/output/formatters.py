"""Human/JSON output for adapter replies.

The CLI renders an AdapterReply for humans (Rich tables) or machines
(``--json``, the envelope exactly as the REST binding would send it).
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.markup import escape
from rich.table import Table

from tangleapi.output.console import create_console, get_output

if TYPE_CHECKING:
    from tangleapi.formats.adapter import AdapterReply
    from tangleapi.services.schema import Operation


def _cell(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return _json.dumps(value, separators=(",", ":"))
    if value is None:
        return "—"
    return str(value)


def format_reply(reply: AdapterReply, *, json_output: bool = False) -> str:
    """Format an adapter reply for display.

    Args:
        reply: The reply to format.
        json_output: If True, return the pretty-printed envelope.
    """
    if json_output:
        return _json.dumps(reply.wire, indent=2)

    console = create_console()
    envelope = reply.wire
    if reply.ok:
        console.print(f"[tangle.ok]OK[/]: [tangle.op]{reply.op}[/]")
        data = envelope.get("data") or {}
        if data:
            table = Table(show_header=False, box=None, pad_edge=False)
            table.add_column(style="tangle.key")
            table.add_column()
            for key, value in data.items():
                table.add_row(escape(key), escape(_cell(value)))
            console.print(table)
        for warning in envelope.get("warnings", []):
            console.print(f"[tangle.warning]WARNING[/]: {escape(warning)}")
    else:
        error = envelope.get("error", {})
        message = escape(error.get("message", ""))
        line = f"[tangle.error]ERROR[/]: [tangle.op]{reply.op}[/] — {message}"
        if error.get("field"):
            line += f" ([tangle.field]{escape(error['field'])}[/])"
        console.print(line)
        for key, value in (error.get("detail") or {}).items():
            console.print(f"  [tangle.key]{escape(key)}[/]: {escape(_cell(value))}")
    return get_output(console).rstrip("\n")


def format_operations(operations: list[Operation], *, json_output: bool = False) -> str:
    """Format the operation catalog."""
    if json_output:
        rows = [
            {"name": op.name, "mutating": op.mutating, "summary": op.summary} for op in operations
        ]
        return _json.dumps(rows, indent=2)

    console = create_console()
    table = Table(title="Operations")
    table.add_column("Operation", style="tangle.op")
    table.add_column("Mutating")
    table.add_column("Summary")
    for op in operations:
        table.add_row(op.name, "yes" if op.mutating else "no", op.summary)
    console.print(table)
    return get_output(console).rstrip("\n")
