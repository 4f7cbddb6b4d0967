"""Conversion layer — typed values ↔ wire representations.

Formats may import from domain. They must never import from bindings,
commands, or output. The adapter module is the only part that talks to
the service layer.
"""

from __future__ import annotations

from functools import cache
from typing import Any

from tangleapi.formats.errors import ConversionError, UnsupportedTypeError
from tangleapi.formats.json_format import JsonCodec, register_json_rules
from tangleapi.formats.registry import ConversionRegistry, ConversionRule, Format, Shape

__all__ = [
    "ConversionError",
    "ConversionRegistry",
    "ConversionRule",
    "Format",
    "Shape",
    "UnsupportedTypeError",
    "codec_for",
    "default_registry",
]

_CODECS: dict[Format, Any] = {Format.JSON: JsonCodec()}


def build_registry() -> ConversionRegistry:
    """Create a registry with every built-in format installed."""
    registry = ConversionRegistry()
    register_json_rules(registry)
    return registry


@cache
def default_registry() -> ConversionRegistry:
    """Process-wide registry shared by all bindings."""
    return build_registry()


def codec_for(fmt: Format) -> Any:
    """Return the text codec for *fmt*."""
    try:
        return _CODECS[fmt]
    except KeyError:
        msg = f"No codec for format {fmt!r}"
        raise UnsupportedTypeError(msg) from None
