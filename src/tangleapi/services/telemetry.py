"""Operation timing — ``@traced`` and the telemetry switch.

Every traced operation logs its duration and outcome at DEBUG. When
telemetry is enabled (``--verbose``), the timing is also injected into
``ServiceResult.meta["telemetry"]`` so it reaches the client envelope.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

import structlog

from tangleapi.services.result import ServiceResult

log = structlog.get_logger("tangleapi.telemetry")

_telemetry_enabled: ContextVar[bool] = ContextVar("_telemetry_enabled", default=False)


@dataclass
class Span:
    """Timing record for one operation call."""

    name: str
    start_time: float = field(default_factory=time.perf_counter)
    end_time: float | None = None

    @property
    def duration_ms(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time) * 1000

    def end(self) -> None:
        self.end_time = time.perf_counter()

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "duration_ms": round(self.duration_ms, 2)}


_P = ParamSpec("_P")
_R = TypeVar("_R")


def traced(name: str) -> Callable[[Callable[_P, _R]], Callable[_P, _R]]:
    """Decorator: time an operation and record its span."""

    def decorator(func: Callable[_P, _R]) -> Callable[_P, _R]:
        @functools.wraps(func)
        def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
            span = Span(name=name)
            try:
                result = func(*args, **kwargs)
            except Exception:
                span.end()
                log.debug("operation.complete", op=name, duration_ms=span.duration_ms, ok=False)
                raise
            span.end()

            ok = getattr(result, "ok", True)
            log.debug(
                "operation.complete",
                op=name,
                duration_ms=round(span.duration_ms, 2),
                ok=ok,
            )
            if _telemetry_enabled.get() and isinstance(result, ServiceResult):
                meta = {**(result.meta or {}), "telemetry": span.to_dict()}
                result = result.model_copy(update={"meta": meta})  # type: ignore[assignment]
            return result

        return wrapper

    return decorator


def enable_telemetry() -> None:
    """Enable telemetry injection (called by AppContext when verbose)."""
    _telemetry_enabled.set(True)


def disable_telemetry() -> None:
    _telemetry_enabled.set(False)


def telemetry_enabled() -> bool:
    return _telemetry_enabled.get()
