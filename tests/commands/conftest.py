"""Fixtures for CLI command tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from tangleapi.domain.types import Milestone, MilestoneIndex
from tangleapi.formats import default_registry
from tangleapi.formats.registry import Format
from tests.conftest import make_bundle, make_hash


@pytest.fixture
def _isolated_node(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run commands from an empty directory with no config in effect."""
    monkeypatch.delenv("TANGLEAPI_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def snapshot_node(_isolated_node: Path) -> Path:
    """A working directory whose tangleapi.toml points at a small snapshot."""
    registry = default_registry()
    snapshot = {
        "solidMilestoneIndex": 4,
        "milestones": [
            registry.encode(Milestone(MilestoneIndex(5), make_hash("ms-5")), Format.JSON)
        ],
        "transactions": [registry.encode(tx, Format.JSON) for tx in make_bundle("cli", 2)],
    }
    (_isolated_node / "snapshot.json").write_text(json.dumps(snapshot), encoding="utf-8")
    (_isolated_node / "tangleapi.toml").write_text(
        '[node]\nname = "cli-node"\nsnapshot = "snapshot.json"\n', encoding="utf-8"
    )
    return _isolated_node
