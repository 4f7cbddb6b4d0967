"""Request/response schema — one named pair per node operation.

Models are frozen and strict: a request that exists is structurally
valid. Wire naming is not decided here; each format maps field names
itself (JSON uses lowerCamelCase).
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

from tangleapi.domain.types import Hash, Milestone, MilestoneIndex, Transaction


class _Schema(BaseModel):
    model_config = ConfigDict(frozen=True, strict=True, arbitrary_types_allowed=True)


# --- node_info ---


class NodeInfoRequest(_Schema):
    """``node_info`` takes no parameters."""


class NodeInfoResponse(_Schema):
    is_synced: bool
    last_milestone_index: MilestoneIndex
    last_milestone_hash: Hash | None = None
    solid_milestone_index: MilestoneIndex
    app_name: str
    app_version: str


# --- transaction lookups ---


class TransactionByHashRequest(_Schema):
    hash: Hash


class TransactionByHashResponse(_Schema):
    """``transaction`` is None when the node does not know the hash."""

    transaction: Transaction | None = None


class TransactionsByHashesRequest(_Schema):
    hashes: list[Hash] = Field(min_length=1)


class TransactionsByHashesResponse(_Schema):
    """One entry per requested hash; unknown hashes map to None."""

    transactions: dict[Hash, Transaction | None]


class TransactionsByBundleRequest(_Schema):
    entry: Hash
    bundle: Hash


class TransactionsByBundleResponse(_Schema):
    transactions: dict[Hash, Transaction]


# --- milestones ---


class MilestoneByIndexRequest(_Schema):
    index: MilestoneIndex


class MilestoneByIndexResponse(_Schema):
    milestone: Milestone | None = None


# --- submission ---


class SubmitTransactionsRequest(_Schema):
    """All transactions of exactly one bundle, in any order."""

    transactions: list[Transaction] = Field(min_length=1)


class SubmitTransactionsResponse(_Schema):
    hashes: list[Hash]


# --- operation catalog ---


@dataclass(frozen=True)
class Operation:
    """Catalog entry binding an operation name to its schema pair."""

    name: str
    request: type[BaseModel]
    response: type[BaseModel]
    summary: str
    mutating: bool = False


OPERATIONS: dict[str, Operation] = {
    op.name: op
    for op in (
        Operation(
            "node_info",
            NodeInfoRequest,
            NodeInfoResponse,
            "Synchronisation state and latest milestone.",
        ),
        Operation(
            "transaction_by_hash",
            TransactionByHashRequest,
            TransactionByHashResponse,
            "Look up one transaction; absent hashes yield an empty result.",
        ),
        Operation(
            "transactions_by_hashes",
            TransactionsByHashesRequest,
            TransactionsByHashesResponse,
            "Look up several transactions at once.",
        ),
        Operation(
            "transactions_by_bundle",
            TransactionsByBundleRequest,
            TransactionsByBundleResponse,
            "Collect a bundle starting from its tail transaction.",
        ),
        Operation(
            "milestone_by_index",
            MilestoneByIndexRequest,
            MilestoneByIndexResponse,
            "Look up a confirmed milestone by index.",
        ),
        Operation(
            "submit_transactions",
            SubmitTransactionsRequest,
            SubmitTransactionsResponse,
            "Attach a complete bundle to the node, all or nothing.",
            mutating=True,
        ),
    )
}
