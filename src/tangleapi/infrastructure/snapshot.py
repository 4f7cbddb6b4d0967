"""Seed a MemoryTangle from a JSON snapshot file.

Snapshot layout (JSON, same conventions as the API)::

    {
      "synced": true,
      "solidMilestoneIndex": 41,
      "milestones": [{"index": 42, "hash": "<64 hex>"}],
      "transactions": [{"hash": "...", "bundle": "...", ...}]
    }

Decoding goes through the ConversionRegistry, so a snapshot is validated
exactly like an API request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tangleapi.domain.types import Milestone, MilestoneIndex, Transaction
from tangleapi.formats import codec_for, default_registry
from tangleapi.formats.errors import ConversionError
from tangleapi.formats.registry import Format
from tangleapi.infrastructure.tangle import MemoryTangle

if TYPE_CHECKING:
    from pathlib import Path

    from tangleapi.formats.registry import ConversionRegistry

logger = logging.getLogger(__name__)


class SnapshotError(Exception):
    """A snapshot file could not be read or decoded."""


@dataclass(frozen=True)
class Snapshot:
    synced: bool = True
    solid_milestone_index: MilestoneIndex = MilestoneIndex(0)
    milestones: list[Milestone] = field(default_factory=list)
    transactions: list[Transaction] = field(default_factory=list)


def load_snapshot(path: Path, registry: ConversionRegistry | None = None) -> MemoryTangle:
    """Read *path* and return a MemoryTangle holding its contents."""
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Cannot read snapshot {path}: {exc}"
        raise SnapshotError(msg) from exc

    registry = registry or default_registry()
    try:
        wire = codec_for(Format.JSON).loads(raw)
        snapshot = registry.decode(wire, Snapshot, Format.JSON)
    except ConversionError as exc:
        msg = f"Invalid snapshot {path}: {exc}"
        raise SnapshotError(msg) from exc

    tangle = MemoryTangle(synced=snapshot.synced)
    tangle.insert_many(snapshot.transactions)
    for milestone in snapshot.milestones:
        tangle.add_milestone(milestone)
    tangle.set_solid(snapshot.solid_milestone_index)
    logger.debug(
        "Loaded snapshot %s: %d transaction(s), %d milestone(s)",
        path,
        len(snapshot.transactions),
        len(snapshot.milestones),
    )
    return tangle
