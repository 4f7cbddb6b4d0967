"""REST binding — FastAPI routes over the FormatAdapter.

Input is the request's path parameters plus its raw body; output is a
``fastapi.Response`` whose status reflects the reply code. Handlers run
the synchronous adapter in Starlette's threadpool so concurrent requests
do not block the event loop.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog
from fastapi import APIRouter, FastAPI, Request, Response
from starlette.concurrency import run_in_threadpool

from tangleapi import __version__
from tangleapi.bindings.base import ProtocolBinding
from tangleapi.formats.adapter import MALFORMED_INPUT
from tangleapi.services.result import ErrorCode
from tangleapi.services.schema import OPERATIONS

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from tangleapi.formats.adapter import AdapterReply

log = structlog.get_logger(__name__)

DEFAULT_PREFIX = "/v1"


@dataclass(frozen=True)
class Route:
    """HTTP method and path for one operation.

    ``integers`` names path segments that carry JSON integers. A segment
    that does not parse reaches the decoder as a string and fails there.
    """

    method: str
    path: str
    integers: tuple[str, ...] = ()


ROUTES: dict[str, Route] = {
    "node_info": Route("GET", "/node-info"),
    "transaction_by_hash": Route("GET", "/transactions/{hash}"),
    "transactions_by_hashes": Route("POST", "/transactions/lookup"),
    "transactions_by_bundle": Route("POST", "/transactions/by-bundle"),
    "milestone_by_index": Route("GET", "/milestones/{index}", integers=("index",)),
    "submit_transactions": Route("POST", "/transactions"),
}

STATUS_BY_CODE: dict[str | None, int] = {
    None: 200,
    MALFORMED_INPUT: 400,
    ErrorCode.INVALID_PARAMS.value: 422,
    ErrorCode.NOT_FOUND.value: 404,
    ErrorCode.INTERNAL_ERROR.value: 500,
}


@dataclass(frozen=True)
class RestInput:
    """What a REST handler hands to the binding."""

    path_params: Mapping[str, Any] = field(default_factory=dict)
    body: bytes = b""


class RestBinding(ProtocolBinding[RestInput, Response]):
    name = "rest"
    default_operations = tuple(ROUTES)

    def adapter_input(
        self, op: str, payload: RestInput
    ) -> tuple[str | bytes | None, Mapping[str, Any] | None]:
        route = ROUTES[op]
        body = payload.body if route.method != "GET" else None
        params = dict(payload.path_params)
        for name in route.integers:
            if name in params:
                params[name] = _as_int(params[name])
        return body, params or None

    def render(self, reply: AdapterReply) -> Response:
        return Response(
            content=reply.raw,
            status_code=STATUS_BY_CODE.get(reply.code, 500),
            media_type=self.adapter.media_type,
        )


def _as_int(segment: Any) -> Any:
    """Parse a decimal path segment; anything else is left for the decoder to reject."""
    if isinstance(segment, str) and segment.lstrip("-").isdigit():
        try:
            return int(segment)
        except ValueError:
            return segment
    return segment


def _endpoint(binding: RestBinding, op: str) -> Callable[[Request], Awaitable[Response]]:
    async def endpoint(request: Request) -> Response:
        payload = RestInput(path_params=dict(request.path_params), body=await request.body())
        response: Response = await run_in_threadpool(binding.invoke, op, payload)
        log.debug(
            "rest.request",
            op=op,
            method=request.method,
            path=request.url.path,
            status=response.status_code,
        )
        return response

    endpoint.__name__ = f"{op}_endpoint"
    return endpoint


def create_app(binding: RestBinding, *, prefix: str = DEFAULT_PREFIX) -> FastAPI:
    """Build a FastAPI application exposing *binding*'s operations under *prefix*."""
    app = FastAPI(title="tangleapi", version=__version__)
    router = APIRouter(prefix=prefix.rstrip("/"))
    for op in binding.exposed:
        route = ROUTES[op]
        router.add_api_route(
            route.path,
            _endpoint(binding, op),
            methods=[route.method],
            name=op,
            summary=OPERATIONS[op].summary,
        )
    app.include_router(router)
    return app
