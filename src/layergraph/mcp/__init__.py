"""layergraph.mcp - optional MCP front end for the graph store.

The engine itself has no dependency on ``mcp``. This package only checks
for FastMCP at import time and defers loading ``layergraph.mcp.server``
until a server is actually requested, so ``layergraph`` and its CLI stay
importable without the extra installed. Callers check ``MCP_AVAILABLE``
(the CLI does this before ``mcp serve``) or catch the ``ImportError``
raised by the wrappers below.
"""

try:
    from mcp.server.fastmcp import FastMCP  # noqa: F401

    MCP_AVAILABLE = True
except ImportError:
    MCP_AVAILABLE = False

INSTALL_HINT = "MCP dependencies not installed. Install with: pip install layergraph[mcp]"


def _require_mcp():
    if not MCP_AVAILABLE:
        raise ImportError(INSTALL_HINT)


def create_server(*args, **kwargs):
    """Build a FastMCP server bound to a GraphStore (see ``server.create_server``)."""
    _require_mcp()
    from layergraph.mcp.server import create_server as _create

    return _create(*args, **kwargs)


def run_server(*args, **kwargs):
    """Create a server and serve it on the given transport (stdio by default)."""
    _require_mcp()
    from layergraph.mcp.server import run_server as _run

    return _run(*args, **kwargs)


__all__ = [
    "INSTALL_HINT",
    "MCP_AVAILABLE",
    "create_server",
    "run_server",
]
