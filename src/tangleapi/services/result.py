"""ServiceResult and ServiceError — the universal service contract.

INVARIANT: All service-layer operations return ServiceResult. Failures
are values, never exceptions escaping the service boundary. The format
adapter and every protocol binding consume this type.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

ResponseT = TypeVar("ResponseT", bound=BaseModel)


class ErrorCode(StrEnum):
    """Closed set of service failure kinds."""

    INVALID_PARAMS = "INVALID_PARAMS"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = ConfigDict(frozen=True)

    code: ErrorCode
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel, Generic[ResponseT]):
    """Return type for all node operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Operation name (e.g. ``"node_info"``).
        data: Typed response on success, None on failure.
        warnings: Non-fatal issues encountered during the operation.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (timing, telemetry).
    """

    model_config = ConfigDict(frozen=True)

    ok: bool
    op: str
    data: ResponseT | None = None
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def success(
        cls, op: str, data: ResponseT, *, warnings: list[str] | None = None
    ) -> ServiceResult[ResponseT]:
        return cls(ok=True, op=op, data=data, warnings=warnings or [])

    @classmethod
    def failure(
        cls, op: str, code: ErrorCode, message: str, **detail: Any
    ) -> ServiceResult[Any]:
        return cls(
            ok=False,
            op=op,
            error=ServiceError(code=code, message=message, detail=detail),
        )
