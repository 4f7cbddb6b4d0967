"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, tangleapi.toml only contains
overrides. An empty file (or none at all) serves an empty in-memory node.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel


class NodeConfig(BaseModel):
    """[node] section."""

    model_config = {"frozen": True}

    name: str = "tangleapi"
    snapshot: Path | None = None
    max_batch: int = 64


class ApiConfig(BaseModel):
    """[api] section — REST binding."""

    model_config = {"frozen": True}

    host: str = "127.0.0.1"
    port: int = 14265
    prefix: str = "/v1"
    operations: list[str] | None = None


class McpConfig(BaseModel):
    """[mcp] section — MCP binding."""

    model_config = {"frozen": True}

    host: str = "127.0.0.1"
    port: int = 8000
    operations: list[str] | None = None
