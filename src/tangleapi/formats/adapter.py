"""FormatAdapter — raw wire payload in, raw wire payload out.

Sits between a protocol binding and the NodeService:

1. parse the raw body with the format's codec and merge transport
   parameters into it,
2. decode the merged tree into the operation's request type,
3. call the service,
4. encode the response (or the failure) as the format's envelope.

Malformed input stops at step 2 and never reaches the service. Failures
are always translated into the format's error envelope, never defaulted.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from tangleapi.formats import codec_for, default_registry
from tangleapi.formats.errors import ConversionError
from tangleapi.formats.registry import Format
from tangleapi.services.node import UnknownOperationError
from tangleapi.services.schema import OPERATIONS

if TYPE_CHECKING:
    from tangleapi.formats.registry import ConversionRegistry
    from tangleapi.services.node import NodeService
    from tangleapi.services.result import ServiceResult

log = structlog.get_logger(__name__)

MALFORMED_INPUT = "MALFORMED_INPUT"


@dataclass(frozen=True)
class AdapterReply:
    """Outcome of one adapted call.

    Attributes:
        op: Operation name.
        code: None on success, ``MALFORMED_INPUT`` for decode failures,
            otherwise the ServiceError code.
        wire: The envelope as a wire tree (for in-process transports).
        raw: The envelope serialised in the format's text form.
    """

    op: str
    code: str | None
    wire: Any
    raw: str

    @property
    def ok(self) -> bool:
        return self.code is None


class FormatAdapter:
    """Decode, dispatch and encode node operations in one wire format."""

    def __init__(
        self,
        service: NodeService,
        *,
        registry: ConversionRegistry | None = None,
        fmt: Format = Format.JSON,
    ) -> None:
        self._service = service
        self._registry = registry or default_registry()
        self._fmt = fmt
        self._codec = codec_for(fmt)

    @property
    def format(self) -> Format:
        return self._fmt

    @property
    def media_type(self) -> str:
        return str(self._codec.media_type)

    def handle(
        self,
        op: str,
        raw: str | bytes | None = None,
        *,
        params: Mapping[str, Any] | None = None,
    ) -> AdapterReply:
        """Run operation *op* on a raw payload.

        *params* are values extracted by the transport (path segments,
        tool arguments) in wire-tree form; they are merged into the
        decoded body. Raises UnknownOperationError for names outside
        the catalog.
        """
        definition = OPERATIONS.get(op)
        if definition is None:
            msg = f"Unknown operation: {op!r}"
            raise UnknownOperationError(msg)

        try:
            body = self._merge(self._codec.loads(raw), params)
            request = self._registry.decode(body, definition.request, self._fmt)
        except ConversionError as exc:
            log.info("request.malformed", op=op, field=exc.field, reason=exc.reason)
            return self._reply(
                op,
                MALFORMED_INPUT,
                self._codec.failure(op, MALFORMED_INPUT, exc.reason, field=exc.field),
            )

        result = self._service.call(op, request)
        return self.encode_result(result, definition.response)

    def encode_result(self, result: ServiceResult[Any], response_type: Any) -> AdapterReply:
        """Translate a ServiceResult into this format's envelope."""
        if result.ok:
            data = self._registry.encode(result.data, self._fmt, response_type)
            envelope = self._codec.success(
                result.op, data, warnings=result.warnings, meta=result.meta
            )
            return self._reply(result.op, None, envelope)

        error = result.error
        assert error is not None, "failed ServiceResult without error"
        log.info("request.failed", op=result.op, code=str(error.code), message=error.message)
        envelope = self._codec.failure(
            result.op, str(error.code), error.message, detail=error.detail
        )
        return self._reply(result.op, str(error.code), envelope)

    def _merge(self, body: Any, params: Mapping[str, Any] | None) -> Any:
        if not params:
            return body
        if not isinstance(body, Mapping):
            raise ConversionError("request body must be an object")
        merged = dict(body)
        for key, value in params.items():
            if key in merged and merged[key] != value:
                raise ConversionError("conflicts with a transport parameter", field=key)
            merged[key] = value
        return merged

    def _reply(self, op: str, code: str | None, envelope: Any) -> AdapterReply:
        return AdapterReply(op=op, code=code, wire=envelope, raw=self._codec.dumps(envelope))
