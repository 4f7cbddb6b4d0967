"""ConversionRegistry — one canonical rule per (type, format).

Every type that crosses the service boundary is converted through this
registry. Leaf rules (hashes, indices, scalars) are registered once per
format; containers and records are built on demand by shape factories
that look their inner rules up here again, so a hash is parsed the same
way wherever it appears.

INVARIANT: ``decode(encode(x, fmt), tp, fmt) == x`` for every valid ``x``.
"""

from __future__ import annotations

import dataclasses
import types
from collections.abc import Callable
from enum import StrEnum
from typing import Any, Protocol, TypeVar, Union, get_args, get_origin, get_type_hints

from pydantic import BaseModel

from tangleapi.formats.errors import UnsupportedTypeError

T = TypeVar("T")


class Format(StrEnum):
    """Wire formats understood by the adapter layer."""

    JSON = "json"


class Shape(StrEnum):
    """Generic type shapes resolved through rule factories."""

    OPTIONAL = "optional"
    LIST = "list"
    DICT = "dict"
    RECORD = "record"


class ConversionRule(Protocol[T]):
    """Bidirectional, stateless mapping between a type and a wire value."""

    def encode(self, value: T) -> Any: ...

    def decode(self, wire: Any) -> T: ...


RuleFactory = Callable[..., ConversionRule[Any]]


@dataclasses.dataclass(frozen=True)
class RecordField:
    """One constructor field of a record type."""

    name: str
    annotation: Any
    required: bool


def is_record(tp: Any) -> bool:
    """Whether *tp* is converted field-by-field (dataclass or pydantic model)."""
    if not isinstance(tp, type):
        return False
    return issubclass(tp, BaseModel) or dataclasses.is_dataclass(tp)


def record_fields(cls: type) -> list[RecordField]:
    """List the constructor fields of a dataclass or pydantic model."""
    if issubclass(cls, BaseModel):
        return [
            RecordField(name, info.annotation, info.is_required())
            for name, info in cls.model_fields.items()
        ]
    hints = get_type_hints(cls)
    return [
        RecordField(
            f.name,
            hints[f.name],
            f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING,
        )
        for f in dataclasses.fields(cls)
        if f.init
    ]


class ConversionRegistry:
    """Lookup table of conversion rules keyed by ``(type, Format)``.

    Usage::

        registry = ConversionRegistry()
        registry.register(Hash, Format.JSON, HashHexRule())
        registry.register_factory(Shape.LIST, Format.JSON, ListRule.build)
        wire = registry.encode([h1, h2], Format.JSON, list[Hash])
    """

    def __init__(self) -> None:
        self._rules: dict[tuple[Any, Format], ConversionRule[Any]] = {}
        self._factories: dict[tuple[Shape, Format], RuleFactory] = {}
        self._resolved: dict[tuple[Any, Format], ConversionRule[Any]] = {}

    @property
    def formats(self) -> frozenset[Format]:
        """Formats with at least one registered leaf rule."""
        return frozenset(fmt for _, fmt in self._rules)

    def register(self, tp: Any, fmt: Format, rule: ConversionRule[Any]) -> None:
        """Register the canonical *rule* for *tp* in *fmt*.

        Raises ValueError if a rule already exists: each type has exactly
        one conversion per format.
        """
        if (tp, fmt) in self._rules:
            msg = f"A {fmt} rule for {tp!r} is already registered"
            raise ValueError(msg)
        self._rules[(tp, fmt)] = rule
        self._resolved.clear()

    def register_factory(self, shape: Shape, fmt: Format, factory: RuleFactory) -> None:
        """Register a rule factory for a generic *shape* in *fmt*.

        The factory is called as ``factory(registry, fmt, *type_args)``.
        """
        self._factories[(shape, fmt)] = factory
        self._resolved.clear()

    def rule_for(self, tp: Any, fmt: Format) -> ConversionRule[Any]:
        """Resolve (and cache) the rule converting *tp* in *fmt*."""
        key = (tp, fmt)
        rule = self._resolved.get(key)
        if rule is None:
            rule = self._resolve(tp, fmt)
            self._resolved[key] = rule
        return rule

    def encode(self, value: Any, fmt: Format, tp: Any = None) -> Any:
        """Encode *value* to a wire value. Total for valid values."""
        return self.rule_for(type(value) if tp is None else tp, fmt).encode(value)

    def decode(self, wire: Any, tp: type[T] | Any, fmt: Format) -> T:
        """Decode *wire* into *tp*. Raises ConversionError on malformed input."""
        rule: ConversionRule[T] = self.rule_for(tp, fmt)
        return rule.decode(wire)

    def _resolve(self, tp: Any, fmt: Format) -> ConversionRule[Any]:
        exact = self._rules.get((tp, fmt))
        if exact is not None:
            return exact

        origin = get_origin(tp)
        args = get_args(tp)
        if origin in (Union, types.UnionType):
            members = tuple(a for a in args if a is not type(None))
            if len(members) != 1 or len(args) != 2:
                msg = f"Only X | None unions are convertible, got {tp!r}"
                raise UnsupportedTypeError(msg)
            return self._build(Shape.OPTIONAL, fmt, tp, members)
        if origin is list:
            return self._build(Shape.LIST, fmt, tp, args)
        if origin is dict:
            return self._build(Shape.DICT, fmt, tp, args)
        if is_record(tp):
            return self._build(Shape.RECORD, fmt, tp, (tp,))

        msg = f"No {fmt} conversion rule for {tp!r}"
        raise UnsupportedTypeError(msg)

    def _build(
        self, shape: Shape, fmt: Format, tp: Any, args: tuple[Any, ...]
    ) -> ConversionRule[Any]:
        factory = self._factories.get((shape, fmt))
        if factory is None:
            msg = f"No {fmt} {shape} factory registered (needed for {tp!r})"
            raise UnsupportedTypeError(msg)
        return factory(self, fmt, *args)
