"""Ledger value types shared by the node internals and the API layer.

INVARIANT: Domain types never know about wire formats. Encoding lives in
:mod:`tangleapi.formats`; these classes only hold and validate values.
"""

from __future__ import annotations

from dataclasses import dataclass

HASH_LENGTH = 32


@dataclass(frozen=True)
class Hash:
    """A 32-byte transaction, bundle, address or milestone hash."""

    digest: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.digest, bytes):
            msg = f"hash digest must be bytes, got {type(self.digest).__name__}"
            raise TypeError(msg)
        if len(self.digest) != HASH_LENGTH:
            msg = f"hash digest must be {HASH_LENGTH} bytes, got {len(self.digest)}"
            raise ValueError(msg)

    def __repr__(self) -> str:
        return f"Hash({self.digest[:4].hex()}…)"


@dataclass(frozen=True, order=True)
class MilestoneIndex:
    """Position of a milestone in the coordinator's sequence."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            msg = f"milestone index must be an int, got {type(self.value).__name__}"
            raise TypeError(msg)
        if self.value < 0:
            msg = f"milestone index must be non-negative, got {self.value}"
            raise ValueError(msg)

    def __int__(self) -> int:
        return self.value


@dataclass(frozen=True)
class Milestone:
    """A confirmed milestone: its index and the hash of its tail transaction."""

    index: MilestoneIndex
    hash: Hash


@dataclass(frozen=True)
class Transaction:
    """Read-only view of a transaction stored by the node."""

    hash: Hash
    address: Hash
    value: int
    bundle: Hash
    trunk: Hash
    branch: Hash
    index: int
    last_index: int
    timestamp: int

    def __post_init__(self) -> None:
        if self.index < 0 or self.last_index < 0:
            msg = "bundle positions must be non-negative"
            raise ValueError(msg)
        if self.index > self.last_index:
            msg = f"index {self.index} exceeds last_index {self.last_index}"
            raise ValueError(msg)

    @property
    def is_tail(self) -> bool:
        """Whether this is the first transaction of its bundle."""
        return self.index == 0

    @property
    def is_head(self) -> bool:
        return self.index == self.last_index


@dataclass(frozen=True)
class NodeStatus:
    """Point-in-time snapshot of the node's synchronisation state."""

    is_synced: bool
    latest_milestone: MilestoneIndex
    latest_milestone_hash: Hash | None
    solid_milestone: MilestoneIndex
