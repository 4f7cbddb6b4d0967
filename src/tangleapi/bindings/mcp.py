"""MCP binding — node tools for FastMCP, read-only unless configured otherwise.

Optional extra, guarded behind try/except ImportError. Input is the tool
argument dict, output is the envelope dict. Each tool has an ``_impl``
function testable without the mcp package; ``register_tools()`` wraps
them with FastMCP decorators.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from tangleapi.bindings.base import ProtocolBinding

if TYPE_CHECKING:
    from tangleapi.formats.adapter import AdapterReply

mcp_available = False
_FastMCP: Any = None

try:
    from mcp.server.fastmcp import FastMCP as _FastMCP  # type: ignore[no-redef,import-not-found]

    mcp_available = True
except ImportError:
    pass

__all__ = ["McpBinding", "create_server", "mcp_available", "register_tools"]


class McpBinding(ProtocolBinding[Mapping[str, Any], dict[str, Any]]):
    name = "mcp"
    default_operations = (
        "node_info",
        "transaction_by_hash",
        "transactions_by_bundle",
        "milestone_by_index",
    )

    def adapter_input(
        self, op: str, payload: Mapping[str, Any]
    ) -> tuple[str | bytes | None, Mapping[str, Any] | None]:
        # Drop arguments the client left unset so required-field checks apply.
        return None, {k: v for k, v in payload.items() if v is not None}

    def render(self, reply: AdapterReply) -> dict[str, Any]:
        response: dict[str, Any] = dict(reply.wire)
        return response


# ---------------------------------------------------------------------------
# Tool implementations
# ---------------------------------------------------------------------------


def node_info_impl(binding: McpBinding) -> dict[str, Any]:
    """Synchronisation state and latest milestone."""
    return binding.invoke("node_info", {})


def transaction_by_hash_impl(binding: McpBinding, tx_hash: str) -> dict[str, Any]:
    """Look up one transaction by hex hash."""
    return binding.invoke("transaction_by_hash", {"hash": tx_hash})


def transactions_by_hashes_impl(binding: McpBinding, hashes: list[str]) -> dict[str, Any]:
    """Look up several transactions by hex hash."""
    return binding.invoke("transactions_by_hashes", {"hashes": hashes})


def transactions_by_bundle_impl(binding: McpBinding, entry: str, bundle: str) -> dict[str, Any]:
    """Collect a bundle from its tail transaction."""
    return binding.invoke("transactions_by_bundle", {"entry": entry, "bundle": bundle})


def milestone_by_index_impl(binding: McpBinding, index: int) -> dict[str, Any]:
    """Look up a milestone by index."""
    return binding.invoke("milestone_by_index", {"index": index})


def submit_transactions_impl(
    binding: McpBinding, transactions: list[dict[str, Any]]
) -> dict[str, Any]:
    """Attach one complete bundle (camelCase transaction objects)."""
    return binding.invoke("submit_transactions", {"transactions": transactions})


# ---------------------------------------------------------------------------
# Registration — wraps _impl functions with FastMCP decorators
# ---------------------------------------------------------------------------


def register_tools(server: Any, binding: McpBinding) -> None:
    """Register one MCP tool per operation the binding exposes."""
    exposed = set(binding.exposed)

    if "node_info" in exposed:

        @server.tool()  # type: ignore[untyped-decorator]
        def node_info() -> dict[str, Any]:
            """Report whether the node is synced and its latest milestone."""
            return node_info_impl(binding)

    if "transaction_by_hash" in exposed:

        @server.tool()  # type: ignore[untyped-decorator]
        def transaction_by_hash(hash: str) -> dict[str, Any]:  # noqa: A002
            """Get a transaction by its 64-character hex hash."""
            return transaction_by_hash_impl(binding, hash)

    if "transactions_by_hashes" in exposed:

        @server.tool()  # type: ignore[untyped-decorator]
        def transactions_by_hashes(hashes: list[str]) -> dict[str, Any]:
            """Get several transactions by hex hash; unknown hashes map to null."""
            return transactions_by_hashes_impl(binding, hashes)

    if "transactions_by_bundle" in exposed:

        @server.tool()  # type: ignore[untyped-decorator]
        def transactions_by_bundle(entry: str, bundle: str) -> dict[str, Any]:
            """Get every transaction of a bundle, starting from its tail."""
            return transactions_by_bundle_impl(binding, entry, bundle)

    if "milestone_by_index" in exposed:

        @server.tool()  # type: ignore[untyped-decorator]
        def milestone_by_index(index: int) -> dict[str, Any]:
            """Get a confirmed milestone by index."""
            return milestone_by_index_impl(binding, index)

    if "submit_transactions" in exposed:

        @server.tool()  # type: ignore[untyped-decorator]
        def submit_transactions(transactions: list[dict[str, Any]]) -> dict[str, Any]:
            """Attach a complete bundle to the node, all or nothing."""
            return submit_transactions_impl(binding, transactions)


def create_server(binding: McpBinding, *, host: str = "127.0.0.1", port: int = 8000) -> Any:
    """Create a FastMCP server exposing *binding*'s tools.

    Raises RuntimeError if the mcp extra is not installed.
    """
    if not mcp_available or _FastMCP is None:
        msg = "MCP extra not installed. Install with: pip install tangleapi[mcp]"
        raise RuntimeError(msg)

    server = _FastMCP("tangleapi", host=host, port=port)
    register_tools(server, binding)
    return server
