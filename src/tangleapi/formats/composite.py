"""Format-agnostic composite rules over Python-native wire trees.

A wire tree is what a format's codec produces before serialisation:
mappings, lists, scalars and None. Formats reuse these rules and only
choose field naming and scalar strictness.

Composite decoding fails on the first failing inner value and reports its
path, e.g. ``transactions[1].bundle``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from tangleapi.formats.errors import ConversionError
from tangleapi.formats.registry import record_fields

if TYPE_CHECKING:
    from tangleapi.formats.registry import ConversionRegistry, ConversionRule, Format


class ScalarRule:
    """Identity rule for a scalar wire type, with strict type checking.

    ``bool`` is never accepted where an ``int`` is expected.
    """

    def __init__(self, py_type: type, label: str) -> None:
        self._type = py_type
        self._label = label

    def encode(self, value: Any) -> Any:
        return value

    def decode(self, wire: Any) -> Any:
        if not isinstance(wire, self._type) or (self._type is int and isinstance(wire, bool)):
            raise ConversionError(f"expected {self._label}, got {_describe(wire)}")
        return wire


class OptionalRule:
    """``X | None``: None passes through, anything else goes to the inner rule."""

    def __init__(self, inner: ConversionRule[Any]) -> None:
        self._inner = inner

    @classmethod
    def build(cls, registry: ConversionRegistry, fmt: Format, inner: Any) -> OptionalRule:
        return cls(registry.rule_for(inner, fmt))

    def encode(self, value: Any) -> Any:
        return None if value is None else self._inner.encode(value)

    def decode(self, wire: Any) -> Any:
        return None if wire is None else self._inner.decode(wire)


class ListRule:
    def __init__(self, item: ConversionRule[Any]) -> None:
        self._item = item

    @classmethod
    def build(cls, registry: ConversionRegistry, fmt: Format, item: Any) -> ListRule:
        return cls(registry.rule_for(item, fmt))

    def encode(self, value: Any) -> list[Any]:
        return [self._item.encode(v) for v in value]

    def decode(self, wire: Any) -> list[Any]:
        if not isinstance(wire, list):
            raise ConversionError(f"expected a list, got {_describe(wire)}")
        items: list[Any] = []
        for i, raw in enumerate(wire):
            try:
                items.append(self._item.decode(raw))
            except ConversionError as exc:
                raise exc.within(f"[{i}]") from None
        return items


class DictRule:
    """Mapping with converted keys and values.

    Keys must encode to strings so every format can represent them as
    object keys.
    """

    def __init__(self, key: ConversionRule[Any], value: ConversionRule[Any]) -> None:
        self._key = key
        self._value = value

    @classmethod
    def build(
        cls, registry: ConversionRegistry, fmt: Format, key: Any, value: Any
    ) -> DictRule:
        return cls(registry.rule_for(key, fmt), registry.rule_for(value, fmt))

    def encode(self, value: Any) -> dict[str, Any]:
        return {self._key.encode(k): self._value.encode(v) for k, v in value.items()}

    def decode(self, wire: Any) -> dict[Any, Any]:
        if not isinstance(wire, Mapping):
            raise ConversionError(f"expected an object, got {_describe(wire)}")
        result: dict[Any, Any] = {}
        for raw_key, raw_value in wire.items():
            try:
                result[self._key.decode(raw_key)] = self._value.decode(raw_value)
            except ConversionError as exc:
                raise exc.within(f"[{raw_key}]") from None
        return result


@dataclass(frozen=True)
class _BoundField:
    attr: str
    wire_name: str
    rule: ConversionRule[Any]
    required: bool


class RecordRule:
    """Dataclass or pydantic model ↔ mapping, composed field by field.

    Inner rules are resolved lazily through the registry on first use, so
    records may reference each other regardless of registration order.
    """

    def __init__(
        self,
        registry: ConversionRegistry,
        fmt: Format,
        cls: type,
        wire_name: Callable[[str], str],
    ) -> None:
        self._registry = registry
        self._fmt = fmt
        self._cls = cls
        self._wire_name = wire_name
        self._fields: list[_BoundField] | None = None

    @classmethod
    def factory(cls, wire_name: Callable[[str], str]) -> Callable[..., RecordRule]:
        """Return a registry factory building records with *wire_name* naming."""

        def build(registry: ConversionRegistry, fmt: Format, record: type) -> RecordRule:
            return cls(registry, fmt, record, wire_name)

        return build

    @property
    def fields(self) -> list[_BoundField]:
        if self._fields is None:
            self._fields = [
                _BoundField(
                    attr=f.name,
                    wire_name=self._wire_name(f.name),
                    rule=self._registry.rule_for(f.annotation, self._fmt),
                    required=f.required,
                )
                for f in record_fields(self._cls)
            ]
        return self._fields

    def encode(self, value: Any) -> dict[str, Any]:
        return {f.wire_name: f.rule.encode(getattr(value, f.attr)) for f in self.fields}

    def decode(self, wire: Any) -> Any:
        if not isinstance(wire, Mapping):
            raise ConversionError(f"expected an object, got {_describe(wire)}")
        values: dict[str, Any] = {}
        for f in self.fields:
            if f.wire_name not in wire:
                if f.required:
                    raise ConversionError("missing required field", field=f.wire_name)
                continue
            try:
                values[f.attr] = f.rule.decode(wire[f.wire_name])
            except ConversionError as exc:
                raise exc.within(f.wire_name) from None
        try:
            return self._cls(**values)
        except ValidationError as exc:
            first = exc.errors()[0]
            loc = first.get("loc") or ()
            field = self._wire_name(str(loc[0])) if loc else None
            raise ConversionError(first["msg"], field=field) from exc
        except (TypeError, ValueError) as exc:
            raise ConversionError(str(exc)) from exc


def _describe(wire: Any) -> str:
    if wire is None:
        return "null"
    if isinstance(wire, bool):
        return "boolean"
    if isinstance(wire, (int, float)):
        return "number"
    if isinstance(wire, str):
        return "string"
    if isinstance(wire, list):
        return "list"
    if isinstance(wire, Mapping):
        return "object"
    return type(wire).__name__
