"""Node-internals collaborator interface and an in-memory implementation.

The service layer only talks to a :class:`Tangle`. Real nodes plug their
storage and consensus in behind this protocol; :class:`MemoryTangle` backs
the CLI, the servers, and the test suite.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from typing import Protocol

from tangleapi.domain.types import Hash, Milestone, MilestoneIndex, NodeStatus, Transaction

logger = logging.getLogger(__name__)


class TangleError(Exception):
    """The node could not complete a call."""


class TangleConflictError(TangleError):
    """An insert collided with transactions the node already holds."""

    def __init__(self, hashes: list[Hash]) -> None:
        self.hashes = hashes
        super().__init__(f"{len(hashes)} transaction(s) already known")


class Tangle(Protocol):
    """Calls the service layer makes into the node."""

    def status(self) -> NodeStatus: ...

    def get(self, tx_hash: Hash) -> Transaction | None: ...

    def milestone(self, index: MilestoneIndex) -> Milestone | None: ...

    def insert_many(self, transactions: Iterable[Transaction]) -> None:
        """Store all *transactions* or none of them."""
        ...


class MemoryTangle:
    """Thread-safe in-memory ledger.

    Readers and writers share one lock; ``insert_many`` checks and writes
    under it so a batch is applied as a unit.
    """

    def __init__(self, *, synced: bool = True) -> None:
        self._lock = threading.Lock()
        self._transactions: dict[Hash, Transaction] = {}
        self._milestones: dict[MilestoneIndex, Milestone] = {}
        self._synced = synced
        self._solid = MilestoneIndex(0)

    def __len__(self) -> int:
        with self._lock:
            return len(self._transactions)

    def status(self) -> NodeStatus:
        with self._lock:
            if not self._milestones:
                return NodeStatus(
                    is_synced=self._synced,
                    latest_milestone=MilestoneIndex(0),
                    latest_milestone_hash=None,
                    solid_milestone=self._solid,
                )
            latest = self._milestones[max(self._milestones)]
            return NodeStatus(
                is_synced=self._synced,
                latest_milestone=latest.index,
                latest_milestone_hash=latest.hash,
                solid_milestone=self._solid,
            )

    def get(self, tx_hash: Hash) -> Transaction | None:
        with self._lock:
            return self._transactions.get(tx_hash)

    def milestone(self, index: MilestoneIndex) -> Milestone | None:
        with self._lock:
            return self._milestones.get(index)

    def insert_many(self, transactions: Iterable[Transaction]) -> None:
        batch = list(transactions)
        with self._lock:
            known = [tx.hash for tx in batch if tx.hash in self._transactions]
            if known:
                raise TangleConflictError(known)
            for tx in batch:
                self._transactions[tx.hash] = tx
        logger.debug("Inserted %d transaction(s)", len(batch))

    def add_milestone(self, milestone: Milestone) -> None:
        with self._lock:
            self._milestones[milestone.index] = milestone

    def set_solid(self, index: MilestoneIndex) -> None:
        with self._lock:
            self._solid = index

    def set_synced(self, synced: bool) -> None:
        with self._lock:
            self._synced = synced
