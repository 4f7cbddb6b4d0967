"""JSON wire format — leaf rules, record naming, and the text codec.

Records become objects with lowerCamelCase keys, hashes become 64-char
hex strings, milestone indices become plain integers.
"""

from __future__ import annotations

import binascii
import json
from typing import Any

from pydantic.alias_generators import to_camel

from tangleapi.domain.types import HASH_LENGTH, Hash, MilestoneIndex
from tangleapi.formats.composite import (
    DictRule,
    ListRule,
    OptionalRule,
    RecordRule,
    ScalarRule,
)
from tangleapi.formats.errors import ConversionError
from tangleapi.formats.registry import ConversionRegistry, Format, Shape

MEDIA_TYPE = "application/json"


class HashHexRule:
    """Hash ↔ lowercase hex string."""

    def encode(self, value: Hash) -> str:
        return value.digest.hex()

    def decode(self, wire: Any) -> Hash:
        if not isinstance(wire, str):
            raise ConversionError("expected a hex-encoded hash string")
        if len(wire) != HASH_LENGTH * 2:
            raise ConversionError(
                f"expected {HASH_LENGTH * 2} hex characters, got {len(wire)}"
            )
        try:
            return Hash(binascii.unhexlify(wire))
        except (binascii.Error, ValueError) as exc:
            raise ConversionError("hash is not valid hex") from exc


class MilestoneIndexRule:
    def encode(self, value: MilestoneIndex) -> int:
        return value.value

    def decode(self, wire: Any) -> MilestoneIndex:
        if isinstance(wire, bool) or not isinstance(wire, int):
            raise ConversionError("expected a non-negative integer milestone index")
        if wire < 0:
            raise ConversionError(f"milestone index must be non-negative, got {wire}")
        return MilestoneIndex(wire)


def register_json_rules(registry: ConversionRegistry) -> None:
    """Install the canonical JSON rules on *registry*."""
    fmt = Format.JSON
    registry.register(bool, fmt, ScalarRule(bool, "boolean"))
    registry.register(int, fmt, ScalarRule(int, "integer"))
    registry.register(str, fmt, ScalarRule(str, "string"))
    registry.register(Hash, fmt, HashHexRule())
    registry.register(MilestoneIndex, fmt, MilestoneIndexRule())

    registry.register_factory(Shape.OPTIONAL, fmt, OptionalRule.build)
    registry.register_factory(Shape.LIST, fmt, ListRule.build)
    registry.register_factory(Shape.DICT, fmt, DictRule.build)
    registry.register_factory(Shape.RECORD, fmt, RecordRule.factory(to_camel))


class JsonCodec:
    """JSON text ↔ wire tree, plus the reply envelopes.

    Envelope shape::

        {"ok": true, "op": "node_info", "data": {...}}
        {"ok": false, "op": "node_info", "error": {"code": "...", "message": "..."}}
    """

    format = Format.JSON
    media_type = MEDIA_TYPE

    def loads(self, raw: str | bytes | None) -> Any:
        """Parse *raw* JSON text. Empty input is an empty object."""
        if raw is None or not raw.strip():
            return {}
        try:
            return json.loads(raw)
        except UnicodeDecodeError as exc:
            raise ConversionError("request body is not valid UTF-8") from exc
        except json.JSONDecodeError as exc:
            raise ConversionError(
                f"malformed JSON: {exc.msg} (line {exc.lineno}, column {exc.colno})"
            ) from exc
        except ValueError as exc:
            # Oversized integer literals exceed int() digit limits.
            raise ConversionError(f"malformed JSON: {exc}") from exc
        except RecursionError as exc:
            raise ConversionError("malformed JSON: nesting too deep") from exc

    def dumps(self, wire: Any) -> str:
        return json.dumps(wire, separators=(",", ":"))

    def success(
        self,
        op: str,
        data: Any,
        *,
        warnings: list[str] | None = None,
        meta: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        envelope: dict[str, Any] = {"ok": True, "op": op, "data": data}
        if warnings:
            envelope["warnings"] = list(warnings)
        if meta:
            envelope["meta"] = meta
        return envelope

    def failure(
        self,
        op: str,
        code: str,
        message: str,
        *,
        field: str | None = None,
        detail: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        error: dict[str, Any] = {"code": code, "message": message}
        if field is not None:
            error["field"] = field
        if detail:
            error["detail"] = detail
        return {"ok": False, "op": op, "error": error}
