"""Tests for NodeService — every node operation against a MemoryTangle."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from typing import Any
from unittest.mock import MagicMock

import pytest

from tangleapi.domain.types import Milestone, MilestoneIndex, Transaction
from tangleapi.infrastructure.tangle import MemoryTangle, TangleError
from tangleapi.services.node import NodeService, UnknownOperationError
from tangleapi.services.result import ErrorCode, ServiceResult
from tangleapi.services.schema import (
    MilestoneByIndexRequest,
    NodeInfoRequest,
    SubmitTransactionsRequest,
    TransactionByHashRequest,
    TransactionsByBundleRequest,
    TransactionsByHashesRequest,
)
from tests.conftest import make_bundle, make_hash


def _submit(service: NodeService, transactions: list[Transaction]) -> ServiceResult[Any]:
    return service.submit_transactions(SubmitTransactionsRequest(transactions=transactions))


class TestNodeInfo:
    def test_reports_status(self, service: NodeService) -> None:
        result = service.node_info(NodeInfoRequest())
        assert result.ok
        data = result.data
        assert data.is_synced is True
        assert data.last_milestone_index == MilestoneIndex(42)
        assert data.last_milestone_hash == make_hash("ms-42")
        assert data.solid_milestone_index == MilestoneIndex(41)
        assert data.app_name == "test-node"
        assert data.app_version == "9.9.9"

    def test_empty_node(self) -> None:
        result = NodeService(MemoryTangle(synced=False)).node_info(NodeInfoRequest())
        assert result.ok
        assert result.data.is_synced is False
        assert result.data.last_milestone_index == MilestoneIndex(0)
        assert result.data.last_milestone_hash is None
        assert result.data.app_name == "tangleapi"


class TestTransactionLookups:
    def test_known_hash(self, service: NodeService) -> None:
        result = service.transaction_by_hash(
            TransactionByHashRequest(hash=make_hash("seed-tx-1"))
        )
        assert result.ok
        assert result.data.transaction is not None
        assert result.data.transaction.index == 1

    def test_unknown_hash_is_empty_not_error(self, service: NodeService) -> None:
        result = service.transaction_by_hash(TransactionByHashRequest(hash=make_hash("nope")))
        assert result.ok
        assert result.data.transaction is None

    def test_batch_maps_every_hash(self, service: NodeService) -> None:
        known, unknown = make_hash("seed-tx-0"), make_hash("nope")
        result = service.transactions_by_hashes(
            TransactionsByHashesRequest(hashes=[known, unknown])
        )
        assert result.ok
        assert set(result.data.transactions) == {known, unknown}
        assert result.data.transactions[known] is not None
        assert result.data.transactions[unknown] is None

    def test_batch_limit(self, service: NodeService) -> None:
        hashes = [make_hash(str(i)) for i in range(9)]
        result = service.transactions_by_hashes(TransactionsByHashesRequest(hashes=hashes))
        assert not result.ok
        assert result.error.code is ErrorCode.INVALID_PARAMS
        assert result.error.detail == {"requested": 9}


class TestTransactionsByBundle:
    def _request(self, entry: str, bundle: str = "seed-bundle") -> TransactionsByBundleRequest:
        return TransactionsByBundleRequest(entry=make_hash(entry), bundle=make_hash(bundle))

    def test_collects_whole_bundle(self, service: NodeService) -> None:
        result = service.transactions_by_bundle(self._request("seed-tx-0"))
        assert result.ok
        assert set(result.data.transactions) == {make_hash(f"seed-tx-{i}") for i in range(3)}
        for tx_hash, tx in result.data.transactions.items():
            assert tx.hash == tx_hash

    def test_unknown_entry_is_not_found(self, service: NodeService) -> None:
        result = service.transactions_by_bundle(self._request("ghost"))
        assert not result.ok
        assert result.error.code is ErrorCode.NOT_FOUND
        assert result.error.detail == {"entry": make_hash("ghost").digest.hex()}

    def test_wrong_bundle(self, service: NodeService) -> None:
        result = service.transactions_by_bundle(self._request("seed-tx-0", "other-bundle"))
        assert not result.ok
        assert result.error.code is ErrorCode.INVALID_PARAMS

    def test_entry_must_be_tail(self, service: NodeService) -> None:
        result = service.transactions_by_bundle(self._request("seed-tx-1"))
        assert not result.ok
        assert result.error.code is ErrorCode.INVALID_PARAMS
        assert result.error.detail == {"index": 1}

    def test_incomplete_bundle(self) -> None:
        bundle = make_bundle("gap", 3)
        tangle = MemoryTangle()
        tangle.insert_many([bundle[0], bundle[2]])
        service = NodeService(tangle)
        result = service.transactions_by_bundle(self._request("gap-tx-0", "gap-bundle"))
        assert not result.ok
        assert result.error.code is ErrorCode.NOT_FOUND
        assert result.error.detail == {
            "missing": make_hash("gap-tx-1").digest.hex(),
            "position": 1,
        }

    def test_single_transaction_bundle(self) -> None:
        tangle = MemoryTangle()
        tangle.insert_many(make_bundle("one", 1))
        service = NodeService(tangle)
        result = service.transactions_by_bundle(self._request("one-tx-0", "one-bundle"))
        assert result.ok
        assert list(result.data.transactions) == [make_hash("one-tx-0")]


class TestMilestoneByIndex:
    def test_known(self, service: NodeService) -> None:
        result = service.milestone_by_index(MilestoneByIndexRequest(index=MilestoneIndex(42)))
        assert result.ok
        assert result.data.milestone == Milestone(MilestoneIndex(42), make_hash("ms-42"))

    def test_unknown_below_latest_is_empty(self, service: NodeService) -> None:
        result = service.milestone_by_index(MilestoneByIndexRequest(index=MilestoneIndex(7)))
        assert result.ok
        assert result.data.milestone is None

    def test_beyond_latest_is_invalid(self, service: NodeService) -> None:
        result = service.milestone_by_index(MilestoneByIndexRequest(index=MilestoneIndex(43)))
        assert not result.ok
        assert result.error.code is ErrorCode.INVALID_PARAMS
        assert result.error.detail == {"index": 43, "latest": 42}

    def test_zero_on_empty_node(self) -> None:
        result = NodeService(MemoryTangle()).milestone_by_index(
            MilestoneByIndexRequest(index=MilestoneIndex(0))
        )
        assert result.ok
        assert result.data.milestone is None


class TestSubmitTransactions:
    def test_accepts_bundle(self, service: NodeService, tangle: MemoryTangle) -> None:
        bundle = make_bundle("new", 3, values=[10, -4, -6])
        result = _submit(service, bundle)
        assert result.ok
        assert result.data.hashes == [tx.hash for tx in bundle]
        assert len(tangle) == 6
        assert tangle.get(bundle[2].hash) == bundle[2]

    def test_any_order(self, service: NodeService) -> None:
        bundle = make_bundle("shuffled", 3)
        result = _submit(service, [bundle[2], bundle[0], bundle[1]])
        assert result.ok
        assert result.data.hashes == [tx.hash for tx in bundle]

    def test_submitted_bundle_is_queryable(self, service: NodeService) -> None:
        _submit(service, make_bundle("fresh", 2))
        result = service.transactions_by_bundle(
            TransactionsByBundleRequest(
                entry=make_hash("fresh-tx-0"), bundle=make_hash("fresh-bundle")
            )
        )
        assert result.ok
        assert len(result.data.transactions) == 2

    @pytest.mark.parametrize(
        ("build", "message"),
        [
            (lambda: make_bundle("big", 9), "At most 8 transactions"),
            (lambda: [make_bundle("dup", 2)[0]] * 2, "Duplicate"),
            (lambda: [make_bundle("a", 2)[0], make_bundle("b", 2)[1]], "exactly one bundle"),
            (
                lambda: [make_bundle("d", 2)[0], replace(make_bundle("d", 2)[1], last_index=2)],
                "disagree",
            ),
            (lambda: [make_bundle("g", 3)[0], make_bundle("g", 3)[2]], "cover 0..last_index"),
            (
                lambda: [
                    replace(make_bundle("t", 2)[0], trunk=make_hash("elsewhere")),
                    make_bundle("t", 2)[1],
                ],
                "Trunk",
            ),
            (lambda: make_bundle("s", 2, values=[1, 1]), "sum to zero"),
        ],
    )
    def test_rejects_malformed_bundle(
        self,
        service: NodeService,
        tangle: MemoryTangle,
        build: Callable[[], list[Transaction]],
        message: str,
    ) -> None:
        before = len(tangle)
        result = _submit(service, build())
        assert not result.ok
        assert result.error.code is ErrorCode.INVALID_PARAMS
        assert message in result.error.message
        assert len(tangle) == before

    def test_known_transactions_rejected_atomically(self, tangle: MemoryTangle) -> None:
        bundle = make_bundle("partial", 3)
        tangle.insert_many([bundle[1]])
        service = NodeService(tangle)

        result = _submit(service, bundle)

        assert not result.ok
        assert result.error.code is ErrorCode.INVALID_PARAMS
        assert result.error.detail == {"known": [bundle[1].hash.digest.hex()]}
        assert tangle.get(bundle[0].hash) is None
        assert tangle.get(bundle[2].hash) is None

    def test_resubmission_rejected(self, service: NodeService, tangle: MemoryTangle) -> None:
        result = _submit(service, make_bundle("seed", 3))
        assert not result.ok
        assert len(result.error.detail["known"]) == 3
        assert len(tangle) == 3


class TestPurity:
    def test_reads_never_write(self, tangle: MemoryTangle) -> None:
        spy = MagicMock(wraps=tangle)
        service = NodeService(spy)
        service.node_info(NodeInfoRequest())
        service.transaction_by_hash(TransactionByHashRequest(hash=make_hash("seed-tx-0")))
        service.transactions_by_hashes(TransactionsByHashesRequest(hashes=[make_hash("x")]))
        service.transactions_by_bundle(
            TransactionsByBundleRequest(
                entry=make_hash("seed-tx-0"), bundle=make_hash("seed-bundle")
            )
        )
        service.milestone_by_index(MilestoneByIndexRequest(index=MilestoneIndex(41)))
        spy.insert_many.assert_not_called()
        spy.add_milestone.assert_not_called()

    def test_reads_are_repeatable(self, service: NodeService) -> None:
        request = TransactionsByBundleRequest(
            entry=make_hash("seed-tx-0"), bundle=make_hash("seed-bundle")
        )
        assert service.transactions_by_bundle(request) == service.transactions_by_bundle(request)


class TestCollaboratorFailures:
    @pytest.mark.parametrize(
        ("exc", "reason"),
        [(TangleError("down"), "node"), (TimeoutError(), "timeout"), (OSError("io"), "OSError")],
    )
    def test_get_failure(self, exc: Exception, reason: str) -> None:
        tangle = MagicMock(spec=MemoryTangle)
        tangle.get.side_effect = exc
        result = NodeService(tangle).transaction_by_hash(
            TransactionByHashRequest(hash=make_hash("x"))
        )
        assert not result.ok
        assert result.error.code is ErrorCode.INTERNAL_ERROR
        assert result.error.detail["reason"] == reason

    def test_insert_failure(self) -> None:
        tangle = MagicMock(spec=MemoryTangle)
        tangle.insert_many.side_effect = TangleError("read-only")
        result = _submit(NodeService(tangle), make_bundle("ro", 1))
        assert not result.ok
        assert result.error.code is ErrorCode.INTERNAL_ERROR


class TestDispatch:
    def test_call_routes_by_name(self, service: NodeService) -> None:
        result = service.call("node_info", NodeInfoRequest())
        assert result.ok
        assert result.op == "node_info"

    def test_unknown_operation(self, service: NodeService) -> None:
        with pytest.raises(UnknownOperationError):
            service.call("get_balances", NodeInfoRequest())

    def test_wrong_request_type(self, service: NodeService) -> None:
        with pytest.raises(TypeError, match="TransactionByHashRequest"):
            service.call("transaction_by_hash", NodeInfoRequest())
