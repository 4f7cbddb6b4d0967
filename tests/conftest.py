"""Shared pytest fixtures and test helpers for tangleapi tests."""

from __future__ import annotations

import hashlib
from collections.abc import Generator

import pytest
from click.testing import CliRunner

from tangleapi.domain.types import Hash, Milestone, MilestoneIndex, Transaction
from tangleapi.formats import build_registry
from tangleapi.formats.adapter import FormatAdapter
from tangleapi.formats.registry import ConversionRegistry
from tangleapi.infrastructure.tangle import MemoryTangle
from tangleapi.services.node import NodeService
from tangleapi.services.telemetry import disable_telemetry


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def _telemetry_off() -> Generator[None]:
    """Keep telemetry injection from leaking between tests."""
    disable_telemetry()
    yield
    disable_telemetry()


@pytest.fixture
def registry() -> ConversionRegistry:
    """A fresh registry with the built-in formats installed."""
    return build_registry()


@pytest.fixture
def tangle() -> MemoryTangle:
    """In-memory node holding one bundle and two milestones (41, 42)."""
    t = MemoryTangle()
    t.insert_many(make_bundle("seed", 3))
    t.add_milestone(Milestone(MilestoneIndex(41), make_hash("ms-41")))
    t.add_milestone(Milestone(MilestoneIndex(42), make_hash("ms-42")))
    t.set_solid(MilestoneIndex(41))
    return t


@pytest.fixture
def service(tangle: MemoryTangle) -> NodeService:
    return NodeService(tangle, app_name="test-node", app_version="9.9.9", max_batch=8)


@pytest.fixture
def adapter(service: NodeService, registry: ConversionRegistry) -> FormatAdapter:
    return FormatAdapter(service, registry=registry)


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def make_hash(label: str) -> Hash:
    """Deterministic hash derived from *label*."""
    return Hash(hashlib.sha256(label.encode("utf-8")).digest())


def make_bundle(label: str, size: int, values: list[int] | None = None) -> list[Transaction]:
    """Build a well-formed bundle of *size* transactions, tail first.

    Position ``i`` has hash ``make_hash(f"{label}-tx-{i}")`` and its trunk
    points at position ``i + 1``; the head's trunk points outside the bundle.
    """
    values = values or [0] * size
    hashes = [make_hash(f"{label}-tx-{i}") for i in range(size)]
    bundle = make_hash(f"{label}-bundle")
    outside = make_hash(f"{label}-parent")
    return [
        Transaction(
            hash=hashes[i],
            address=make_hash(f"{label}-addr-{i}"),
            value=values[i],
            bundle=bundle,
            trunk=hashes[i + 1] if i + 1 < size else outside,
            branch=outside,
            index=i,
            last_index=size - 1,
            timestamp=1_600_000_000 + i,
        )
        for i in range(size)
    ]
