"""Command-line binding — raw request text in, AdapterReply out.

Used by ``tangleapi call``; the command layer decides how to print the
reply.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from tangleapi.bindings.base import ProtocolBinding
from tangleapi.formats.adapter import AdapterReply


class CliBinding(ProtocolBinding[str | None, AdapterReply]):
    name = "cli"

    def adapter_input(
        self, op: str, payload: str | None
    ) -> tuple[str | bytes | None, Mapping[str, Any] | None]:
        return payload, None

    def render(self, reply: AdapterReply) -> AdapterReply:
        return reply
