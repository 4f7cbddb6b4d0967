"""Domain layer — pure value types, no infrastructure or format dependencies."""

from tangleapi.domain.types import (
    HASH_LENGTH,
    Hash,
    Milestone,
    MilestoneIndex,
    NodeStatus,
    Transaction,
)

__all__ = [
    "HASH_LENGTH",
    "Hash",
    "Milestone",
    "MilestoneIndex",
    "NodeStatus",
    "Transaction",
]
