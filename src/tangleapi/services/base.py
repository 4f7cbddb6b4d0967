"""BaseService — shared foundation for node-facing services.

Every service receives a :class:`Tangle` at construction time and reaches
node state only through it. The :func:`operation` decorator is the
service boundary: whatever the node call raises comes back out as a
failed ServiceResult.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from concurrent.futures import CancelledError
from typing import TYPE_CHECKING, Any, TypeVar, cast

from tangleapi.infrastructure.tangle import TangleError
from tangleapi.services.result import ErrorCode, ServiceResult
from tangleapi.services.telemetry import traced

if TYPE_CHECKING:
    from tangleapi.infrastructure.tangle import Tangle

logger = logging.getLogger(__name__)

_Method = TypeVar("_Method", bound=Callable[..., Any])


def operation(name: str) -> Callable[[_Method], _Method]:
    """Mark a service method as the implementation of operation *name*.

    INVARIANT: No exception escapes a decorated method. Node failures,
    timeouts and cancellations become ``INTERNAL_ERROR`` results.
    """

    def decorator(func: _Method) -> _Method:
        @functools.wraps(func)
        def wrapper(self: BaseService, request: Any) -> ServiceResult[Any]:
            try:
                return func(self, request)
            except TangleError as exc:
                logger.warning("Node call failed in %s: %s", name, exc)
                return ServiceResult.failure(
                    name, ErrorCode.INTERNAL_ERROR, f"Node call failed: {exc}", reason="node"
                )
            except TimeoutError:
                logger.warning("Node call timed out in %s", name)
                return ServiceResult.failure(
                    name, ErrorCode.INTERNAL_ERROR, "Node call timed out", reason="timeout"
                )
            except CancelledError:
                logger.warning("Node call cancelled in %s", name)
                return ServiceResult.failure(
                    name, ErrorCode.INTERNAL_ERROR, "Node call was cancelled", reason="cancelled"
                )
            except Exception as exc:
                logger.exception("Unexpected failure in %s", name)
                return ServiceResult.failure(
                    name,
                    ErrorCode.INTERNAL_ERROR,
                    "Internal error",
                    reason=type(exc).__name__,
                )

        wrapper.operation_name = name  # type: ignore[attr-defined]
        return cast(_Method, traced(name)(wrapper))

    return decorator


class BaseService:
    """Abstract base for service-layer classes.

    Usage::

        class NodeService(BaseService):
            @operation("node_info")
            def node_info(self, request: NodeInfoRequest) -> ServiceResult[NodeInfoResponse]:
                status = self._tangle.status()
                ...
    """

    def __init__(self, tangle: Tangle) -> None:
        self._tangle = tangle

    @classmethod
    def operations(cls) -> dict[str, str]:
        """Map operation names to the method names implementing them."""
        found: dict[str, str] = {}
        for attr in dir(cls):
            name = getattr(getattr(cls, attr, None), "operation_name", None)
            if name is not None:
                found[name] = attr
        return found
