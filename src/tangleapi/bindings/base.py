"""ProtocolBinding — transport-specific exposure of node operations.

A binding chooses which catalog operations it exposes and how its
transport's native input and output look. It never converts values or
calls the service itself; both go through the shared FormatAdapter.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from tangleapi.services.node import UnknownOperationError
from tangleapi.services.schema import OPERATIONS

if TYPE_CHECKING:
    from tangleapi.formats.adapter import AdapterReply, FormatAdapter

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")


class OperationNotExposedError(LookupError):
    """The operation exists but this binding does not expose it."""


class ProtocolBinding(ABC, Generic[InputT, OutputT]):
    """Base class for transport bindings.

    Subclasses set ``name`` and ``default_operations`` and implement the
    two transport-facing conversions:

    * :meth:`adapter_input` — native input → ``(raw body, params)``
    * :meth:`render` — :class:`AdapterReply` → native output
    """

    name: ClassVar[str]
    default_operations: ClassVar[tuple[str, ...]] = tuple(OPERATIONS)

    def __init__(
        self,
        adapter: FormatAdapter,
        *,
        operations: Iterable[str] | None = None,
    ) -> None:
        chosen = tuple(self.default_operations if operations is None else operations)
        unknown = [op for op in chosen if op not in OPERATIONS]
        if unknown:
            msg = f"{self.name} binding: unknown operation(s): {', '.join(unknown)}"
            raise UnknownOperationError(msg)
        self._adapter = adapter
        self._exposed = chosen

    @property
    def adapter(self) -> FormatAdapter:
        return self._adapter

    @property
    def exposed(self) -> tuple[str, ...]:
        """Operations reachable through this binding."""
        return self._exposed

    def invoke(self, op: str, payload: InputT) -> OutputT:
        """Run *op* for a native transport input and return native output."""
        if op not in self._exposed:
            msg = f"{op!r} is not exposed by the {self.name} binding"
            raise OperationNotExposedError(msg)
        raw, params = self.adapter_input(op, payload)
        return self.render(self._adapter.handle(op, raw, params=params))

    @abstractmethod
    def adapter_input(
        self, op: str, payload: InputT
    ) -> tuple[str | bytes | None, Mapping[str, Any] | None]:
        """Split native input into a raw body and transport parameters."""

    @abstractmethod
    def render(self, reply: AdapterReply) -> OutputT:
        """Wrap an adapter reply in the transport's native output."""
