"""NodeService — the protocol-neutral node operations.

Each method takes a typed request and returns ``ServiceResult`` carrying
the matching typed response. Read operations never write to the tangle;
``submit_transactions`` is the only mutating operation and applies a
bundle as a single ``insert_many`` call.

Absence policy per operation:

* ``transaction_by_hash`` / ``transactions_by_hashes`` / ``milestone_by_index``:
  unknown entities yield empty (None) results.
* ``transactions_by_bundle``: an unknown entry or an incomplete bundle is
  a ``NOT_FOUND`` error.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from tangleapi import __version__
from tangleapi.domain.types import Hash, Transaction
from tangleapi.infrastructure.tangle import TangleConflictError
from tangleapi.services.base import BaseService, operation
from tangleapi.services.result import ErrorCode, ServiceResult
from tangleapi.services.schema import (
    OPERATIONS,
    MilestoneByIndexRequest,
    MilestoneByIndexResponse,
    NodeInfoRequest,
    NodeInfoResponse,
    SubmitTransactionsRequest,
    SubmitTransactionsResponse,
    TransactionByHashRequest,
    TransactionByHashResponse,
    TransactionsByBundleRequest,
    TransactionsByBundleResponse,
    TransactionsByHashesRequest,
    TransactionsByHashesResponse,
)

if TYPE_CHECKING:
    from tangleapi.infrastructure.tangle import Tangle

logger = logging.getLogger(__name__)

DEFAULT_APP_NAME = "tangleapi"
DEFAULT_MAX_BATCH = 64


class UnknownOperationError(LookupError):
    """No operation with the given name exists in the catalog."""


def _short(tx_hash: Hash) -> str:
    return tx_hash.digest.hex()


class NodeService(BaseService):
    """Node queries and submissions against a :class:`Tangle`."""

    def __init__(
        self,
        tangle: Tangle,
        *,
        app_name: str = DEFAULT_APP_NAME,
        app_version: str = __version__,
        max_batch: int = DEFAULT_MAX_BATCH,
    ) -> None:
        super().__init__(tangle)
        self._app_name = app_name
        self._app_version = app_version
        self._max_batch = max_batch

    def call(self, op: str, request: BaseModel) -> ServiceResult[Any]:
        """Dispatch *request* to the method implementing *op*.

        Raises UnknownOperationError for names outside the catalog and
        TypeError when *request* is not the operation's request type.
        """
        definition = OPERATIONS.get(op)
        method_name = self.operations().get(op)
        if definition is None or method_name is None:
            msg = f"Unknown operation: {op!r}"
            raise UnknownOperationError(msg)
        if not isinstance(request, definition.request):
            msg = f"{op} expects {definition.request.__name__}, got {type(request).__name__}"
            raise TypeError(msg)
        result: ServiceResult[Any] = getattr(self, method_name)(request)
        return result

    # --- queries ---

    @operation("node_info")
    def node_info(self, request: NodeInfoRequest) -> ServiceResult[NodeInfoResponse]:
        status = self._tangle.status()
        return ServiceResult.success(
            "node_info",
            NodeInfoResponse(
                is_synced=status.is_synced,
                last_milestone_index=status.latest_milestone,
                last_milestone_hash=status.latest_milestone_hash,
                solid_milestone_index=status.solid_milestone,
                app_name=self._app_name,
                app_version=self._app_version,
            ),
        )

    @operation("transaction_by_hash")
    def transaction_by_hash(
        self, request: TransactionByHashRequest
    ) -> ServiceResult[TransactionByHashResponse]:
        tx = self._tangle.get(request.hash)
        return ServiceResult.success(
            "transaction_by_hash", TransactionByHashResponse(transaction=tx)
        )

    @operation("transactions_by_hashes")
    def transactions_by_hashes(
        self, request: TransactionsByHashesRequest
    ) -> ServiceResult[TransactionsByHashesResponse]:
        op = "transactions_by_hashes"
        if len(request.hashes) > self._max_batch:
            return ServiceResult.failure(
                op,
                ErrorCode.INVALID_PARAMS,
                f"At most {self._max_batch} hashes per request",
                requested=len(request.hashes),
            )
        found = {h: self._tangle.get(h) for h in request.hashes}
        return ServiceResult.success(op, TransactionsByHashesResponse(transactions=found))

    @operation("transactions_by_bundle")
    def transactions_by_bundle(
        self, request: TransactionsByBundleRequest
    ) -> ServiceResult[TransactionsByBundleResponse]:
        op = "transactions_by_bundle"
        entry = self._tangle.get(request.entry)
        if entry is None:
            return ServiceResult.failure(
                op, ErrorCode.NOT_FOUND, "Entry transaction not found", entry=_short(request.entry)
            )
        if entry.bundle != request.bundle:
            return ServiceResult.failure(
                op,
                ErrorCode.INVALID_PARAMS,
                "Entry transaction belongs to a different bundle",
                entry=_short(request.entry),
            )
        if not entry.is_tail:
            return ServiceResult.failure(
                op,
                ErrorCode.INVALID_PARAMS,
                "Entry transaction is not the bundle tail",
                index=entry.index,
            )

        collected: dict[Hash, Transaction] = {entry.hash: entry}
        current = entry
        while not current.is_head:
            nxt = self._tangle.get(current.trunk)
            if (
                nxt is None
                or nxt.bundle != request.bundle
                or nxt.index != current.index + 1
                or nxt.last_index != entry.last_index
            ):
                return ServiceResult.failure(
                    op,
                    ErrorCode.NOT_FOUND,
                    "Bundle is incomplete",
                    missing=_short(current.trunk),
                    position=current.index + 1,
                )
            collected[nxt.hash] = nxt
            current = nxt
        return ServiceResult.success(op, TransactionsByBundleResponse(transactions=collected))

    @operation("milestone_by_index")
    def milestone_by_index(
        self, request: MilestoneByIndexRequest
    ) -> ServiceResult[MilestoneByIndexResponse]:
        op = "milestone_by_index"
        latest = self._tangle.status().latest_milestone
        if request.index > latest:
            return ServiceResult.failure(
                op,
                ErrorCode.INVALID_PARAMS,
                "Index is beyond the latest milestone",
                index=request.index.value,
                latest=latest.value,
            )
        milestone = self._tangle.milestone(request.index)
        return ServiceResult.success(op, MilestoneByIndexResponse(milestone=milestone))

    # --- submissions ---

    @operation("submit_transactions")
    def submit_transactions(
        self, request: SubmitTransactionsRequest
    ) -> ServiceResult[SubmitTransactionsResponse]:
        op = "submit_transactions"
        problem = self._check_bundle(request.transactions)
        if problem is not None:
            message, detail = problem
            return ServiceResult.failure(op, ErrorCode.INVALID_PARAMS, message, **detail)

        ordered = sorted(request.transactions, key=lambda tx: tx.index)
        try:
            self._tangle.insert_many(ordered)
        except TangleConflictError as exc:
            return ServiceResult.failure(
                op,
                ErrorCode.INVALID_PARAMS,
                "Transactions already known to the node",
                known=[_short(h) for h in exc.hashes],
            )
        logger.info("Accepted bundle of %d transaction(s)", len(ordered))
        return ServiceResult.success(
            op, SubmitTransactionsResponse(hashes=[tx.hash for tx in ordered])
        )

    def _check_bundle(
        self, transactions: list[Transaction]
    ) -> tuple[str, dict[str, Any]] | None:
        """Return ``(message, detail)`` describing why *transactions* is not one bundle."""
        if len(transactions) > self._max_batch:
            return f"At most {self._max_batch} transactions per bundle", {
                "submitted": len(transactions)
            }
        if len({tx.hash for tx in transactions}) != len(transactions):
            return "Duplicate transaction hashes in submission", {}
        if len({tx.bundle for tx in transactions}) != 1:
            return "Transactions must belong to exactly one bundle", {}
        last_indices = {tx.last_index for tx in transactions}
        if len(last_indices) != 1:
            return "Transactions disagree on the bundle's last index", {}
        last_index = last_indices.pop()
        ordered = sorted(transactions, key=lambda tx: tx.index)
        if [tx.index for tx in ordered] != list(range(last_index + 1)):
            return "Bundle positions must cover 0..last_index exactly once", {
                "last_index": last_index
            }
        for current, following in zip(ordered, ordered[1:], strict=False):
            if current.trunk != following.hash:
                return "Trunk does not reference the next bundle position", {
                    "position": current.index
                }
        if sum(tx.value for tx in transactions) != 0:
            return "Bundle values must sum to zero", {}
        return None
