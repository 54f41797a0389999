"""layergraph.mcp.server - MCP server implementation.

Creates and runs the MCP server exposing graph queries and mutations to
AI agents. Every tool names the graph file it works on (``graph_path``);
graphs are loaded on first use and stay in the server's GraphStore, with
their unsaved mutations, until ``save_graph`` or ``discard_changes``.

This is a pure interface layer: each tool validates nothing itself and
delegates to a module-level ``_tool(store, ...)`` function that returns
a JSON-compatible dict.
"""

from __future__ import annotations

import logging
from typing import Any

try:
    from mcp.server.fastmcp import FastMCP

    MCP_AVAILABLE = True
except ImportError:
    MCP_AVAILABLE = False
    FastMCP = None

from layergraph.config import ConfigLoader, get_config
from layergraph.graph import query
from layergraph.graph.errors import ErrorKind, GraphError, NodeNotFoundError
from layergraph.graph.verify import verify_graph
from layergraph.persistence import save_graph
from layergraph.store import GraphStore

logger = logging.getLogger(__name__)

# ─────────────────────────────────────────────────────────────────────────────
# Result helpers
# ─────────────────────────────────────────────────────────────────────────────


def _error(exc: GraphError) -> dict[str, Any]:
    """Translate an engine error into a tool result."""
    return {"success": False, "error": str(exc), "kind": exc.kind.value}


# ─────────────────────────────────────────────────────────────────────────────
# Read Tool Functions
# ─────────────────────────────────────────────────────────────────────────────


def _search_graph(
    store: GraphStore,
    graph_path: str,
    query_text: str,
    node_type: str | None = None,
    layer: str | None = None,
    limit: int = query.DEFAULT_SEARCH_LIMIT,
) -> dict[str, Any]:
    """Keyword search over node id, label and description."""
    try:
        graph = store.get(graph_path)
    except GraphError as e:
        return _error(e)

    results = query.search_nodes(graph, query_text, node_type=node_type, layer=layer, limit=limit)
    return {
        "results": [node.to_dict() for node in results],
        "count": len(results),
    }


def _get_node(store: GraphStore, graph_path: str, node_id: str) -> dict[str, Any]:
    """Get a node with its incoming/outgoing connections and layers."""
    try:
        graph = store.get(graph_path)
        context = query.get_node(graph, node_id)
        if context is None:
            raise NodeNotFoundError(f"Node not found: {node_id}")
    except GraphError as e:
        return _error(e)
    return context.to_dict()


def _get_neighbors(
    store: GraphStore,
    graph_path: str,
    node_id: str,
    direction: str = "both",
    edge_type: str | None = None,
) -> dict[str, Any]:
    try:
        graph = store.get(graph_path)
        neighbors = query.get_neighbors(graph, node_id, direction=direction, edge_type=edge_type)
    except GraphError as e:
        return _error(e)
    return {
        "neighbors": [n.to_dict() for n in neighbors],
        "count": len(neighbors),
    }


def _find_path(
    store: GraphStore,
    graph_path: str,
    from_id: str,
    to_id: str,
    max_depth: int = query.DEFAULT_MAX_DEPTH,
    max_paths: int = query.DEFAULT_MAX_PATHS,
) -> dict[str, Any]:
    """Breadth-first directed path search."""
    try:
        graph = store.get(graph_path)
    except GraphError as e:
        return _error(e)

    paths = query.find_path(graph, from_id, to_id, max_depth=max_depth, max_paths=max_paths)
    return {"paths": paths, "count": len(paths)}


def _get_node_types(store: GraphStore, graph_path: str) -> dict[str, Any]:
    try:
        graph = store.get(graph_path)
    except GraphError as e:
        return _error(e)
    return {"types": query.get_node_types(graph)}


def _list_layer(store: GraphStore, graph_path: str, layer: str) -> dict[str, Any]:
    try:
        graph = store.get(graph_path)
        nodes = query.list_layer(graph, layer)
    except GraphError as e:
        return _error(e)
    return {
        "layer": layer,
        "nodes": [node.to_dict() for node in nodes],
        "count": len(nodes),
    }


def _verify_graph(store: GraphStore, graph_path: str) -> dict[str, Any]:
    try:
        graph = store.get(graph_path)
    except GraphError as e:
        return _error(e)
    return verify_graph(graph).to_dict()


# ─────────────────────────────────────────────────────────────────────────────
# Mutation Tool Functions
# ─────────────────────────────────────────────────────────────────────────────


def _add_node(
    store: GraphStore,
    graph_path: str,
    node_id: str,
    node_type: str,
    label: str,
    description: str | None = None,
    file: str | None = None,
    line: int | None = None,
    inferred: bool = False,
) -> dict[str, Any]:
    """Add a node. The change stays in memory until saved."""
    try:
        graph = store.get(graph_path)
        entry = graph.add_node(
            node_id,
            node_type,
            label,
            description=description,
            file=file,
            line=line,
            inferred=inferred,
        )
    except GraphError as e:
        return _error(e)
    return {
        "success": True,
        "node": entry.after_state,
        "mutation": entry.to_dict(),
        "message": f"Added node {node_id} ({node_type})",
    }


def _add_edge(
    store: GraphStore,
    graph_path: str,
    source: str,
    target: str,
    edge_type: str,
    layer: str | None = None,
    description: str | None = None,
) -> dict[str, Any]:
    try:
        graph = store.get(graph_path)
        entry = graph.add_edge(source, target, edge_type, layer=layer, description=description)
    except GraphError as e:
        return _error(e)
    return {
        "success": True,
        "edge": entry.after_state,
        "mutation": entry.to_dict(),
        "message": f"Added edge {entry.target_id}",
    }


def _add_to_layer(store: GraphStore, graph_path: str, node_id: str, layer: str) -> dict[str, Any]:
    try:
        graph = store.get(graph_path)
        entry = graph.add_to_layer(node_id, layer)
    except GraphError as e:
        return _error(e)
    return {
        "success": True,
        "layer": layer,
        "node_id": node_id,
        "created_layer": entry.before_state["created_layer"],
        "mutation": entry.to_dict(),
        "message": f"Added {node_id} to layer {layer}",
    }


def _remove_node(store: GraphStore, graph_path: str, node_id: str) -> dict[str, Any]:
    """Remove a node and cascade its edges and layer memberships."""
    try:
        graph = store.get(graph_path)
        entry = graph.remove_node(node_id)
    except GraphError as e:
        return _error(e)
    removed_edges = entry.after_state["removed_edges"]
    return {
        "success": True,
        "removed": node_id,
        "removed_edges": removed_edges,
        "mutation": entry.to_dict(),
        "message": f"Removed node {node_id} and {removed_edges} edges",
    }


def _remove_edge(
    store: GraphStore,
    graph_path: str,
    source: str,
    target: str,
    edge_type: str,
) -> dict[str, Any]:
    try:
        graph = store.get(graph_path)
        entry = graph.remove_edge(source, target, edge_type)
    except GraphError as e:
        return _error(e)
    return {
        "success": True,
        "removed": entry.after_state,
        "mutation": entry.to_dict(),
        "message": f"Removed edge {entry.target_id}",
    }


# ─────────────────────────────────────────────────────────────────────────────
# Session Tool Functions
# ─────────────────────────────────────────────────────────────────────────────


def _save_graph(
    store: GraphStore,
    graph_path: str,
    backup: bool = True,
    sort: bool = True,
    indent: int | None = 2,
) -> dict[str, Any]:
    """Persist in-memory changes and evict the graph from the store."""
    try:
        graph = store.get(graph_path)
        result = save_graph(store, graph, backup=backup, sort=sort, indent=indent)
    except GraphError as e:
        return _error(e)
    except OSError as e:
        logger.error("Failed to save %s: %s", graph_path, e)
        return {
            "success": False,
            "error": f"Failed to write graph: {e}",
            "kind": ErrorKind.IO_ERROR.value,
        }
    return result.to_dict()


def _discard_changes(store: GraphStore, graph_path: str) -> dict[str, Any]:
    """Drop the cached graph so the next call reloads it from disk."""
    discarded = store.discard(graph_path)
    return {
        "success": True,
        "discarded_mutations": discarded,
        "message": f"Discarded {discarded} unsaved mutations",
    }


def _undo_last_mutation(store: GraphStore, graph_path: str) -> dict[str, Any]:
    try:
        graph = store.get(graph_path)
    except GraphError as e:
        return _error(e)

    entry = graph.undo_last()
    if entry is None:
        return {
            "success": False,
            "error": "No mutations to undo",
            "kind": ErrorKind.NOTHING_TO_UNDO.value,
        }

    return {
        "success": True,
        "mutation": entry.to_dict(),
        "message": f"Undid {entry.operation} on {entry.target_id}",
    }


def _get_mutation_log(store: GraphStore, graph_path: str, limit: int = 50) -> dict[str, Any]:
    """Get unsaved mutation history, oldest first."""
    try:
        graph = store.get(graph_path)
    except GraphError as e:
        return _error(e)

    entries = list(graph.mutation_log.iter_entries())[: max(limit, 0)]
    mutations = [entry.to_dict() for entry in entries]

    return {
        "mutations": mutations,
        "count": len(mutations),
        "pending": graph.has_pending_changes(),
    }


# ─────────────────────────────────────────────────────────────────────────────
# MCP Server Instructions
# ─────────────────────────────────────────────────────────────────────────────

MCP_SERVER_INSTRUCTIONS = """\
layergraph - query and edit layered knowledge graphs stored as JSON files.

Every tool takes graph_path, the path of a graph_data.json file. A graph is
loaded on first use and kept in memory. Mutations (add_node, add_edge,
add_to_layer, remove_node, remove_edge) only change the in-memory copy
until save_graph writes it back (with a .backup copy by default).

**Exploring:**
1. get_node_types() for an overview
2. search_graph(query) to find nodes by id, label or description
3. get_node(node_id) for one node with its connections and layers
4. get_neighbors() / find_path() to traverse

**Editing:**
1. Apply mutations, check get_mutation_log()
2. verify_graph() before saving
3. save_graph() to persist, or undo_last_mutation() / discard_changes()
"""


# ─────────────────────────────────────────────────────────────────────────────
# MCP Server Factory
# ─────────────────────────────────────────────────────────────────────────────


def create_server(
    store: GraphStore | None = None,
    config: ConfigLoader | None = None,
) -> FastMCP:
    """Create the MCP server with all tools registered.

    Args:
        store: Optional pre-populated store (for testing).
        config: Optional configuration; defaults are resolved from the
            working directory.

    Returns:
        FastMCP server instance.
    """
    if not MCP_AVAILABLE:
        raise ImportError(
            "MCP dependencies not installed. Install with: pip install layergraph[mcp]"
        )

    if config is None:
        config = get_config()

    mcp = FastMCP("layergraph", instructions=MCP_SERVER_INSTRUCTIONS)

    _state: dict[str, Any] = {
        "store": store if store is not None else GraphStore(),
        "config": config,
    }

    def _setting(key: str) -> Any:
        return _state["config"].get(key)

    # ─────────────────────────────────────────────────────────────────────
    # Read Tools
    # ─────────────────────────────────────────────────────────────────────

    @mcp.tool()
    def search_graph(
        graph_path: str,
        query: str,
        type: str | None = None,
        layer: str | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        """Search for nodes by keyword across node ID, label, and description.

        Args:
            graph_path: Path to graph_data.json.
            query: Search keyword (case-insensitive substring).
            type: Optional node type filter.
            layer: Optional layer filter.
            limit: Maximum results (default from config, 20).

        Returns:
            Matching nodes in document order.
        """
        return _search_graph(
            _state["store"],
            graph_path,
            query,
            node_type=type,
            layer=layer,
            limit=limit if limit is not None else _setting("search.limit"),
        )

    @mcp.tool()
    def get_node(graph_path: str, node_id: str) -> dict[str, Any]:
        """Get a node with its incoming and outgoing connections.

        Args:
            graph_path: Path to graph_data.json.
            node_id: The node ID.

        Returns:
            Node fields, connections (with edgeType), first layer and all layers.
        """
        return _get_node(_state["store"], graph_path, node_id)

    @mcp.tool()
    def get_neighbors(
        graph_path: str,
        node_id: str,
        direction: str = "both",
        edge_type: str | None = None,
    ) -> dict[str, Any]:
        """Get nodes connected to a node.

        Args:
            graph_path: Path to graph_data.json.
            node_id: The node ID.
            direction: 'incoming', 'outgoing', or 'both'.
            edge_type: Optional edge type filter.
        """
        return _get_neighbors(_state["store"], graph_path, node_id, direction, edge_type)

    @mcp.tool()
    def find_path(
        graph_path: str,
        from_id: str,
        to_id: str,
        max_depth: int | None = None,
    ) -> dict[str, Any]:
        """Find directed paths between two nodes using BFS.

        Args:
            graph_path: Path to graph_data.json.
            from_id: Start node ID.
            to_id: End node ID.
            max_depth: Maximum path length (default from config, 5).

        Returns:
            Up to three paths, each a list of node IDs.
        """
        return _find_path(
            _state["store"],
            graph_path,
            from_id,
            to_id,
            max_depth=max_depth if max_depth is not None else _setting("paths.max_depth"),
            max_paths=_setting("paths.max_paths"),
        )

    @mcp.tool()
    def get_node_types(graph_path: str) -> dict[str, Any]:
        """Get node counts per type."""
        return _get_node_types(_state["store"], graph_path)

    @mcp.tool()
    def list_layer(graph_path: str, layer: str) -> dict[str, Any]:
        """List all nodes in a layer, in membership order."""
        return _list_layer(_state["store"], graph_path, layer)

    @mcp.tool()
    def verify_graph(graph_path: str) -> dict[str, Any]:
        """Check graph integrity.

        Reports dangling edge endpoints, dangling layer members and
        duplicate edges as issues; orphaned and unlayered nodes as
        warnings.
        """
        return _verify_graph(_state["store"], graph_path)

    # ─────────────────────────────────────────────────────────────────────
    # Mutation Tools
    # ─────────────────────────────────────────────────────────────────────

    @mcp.tool()
    def add_node(
        graph_path: str,
        id: str,
        type: str,
        label: str,
        description: str | None = None,
        file: str | None = None,
        line: int | None = None,
        inferred: bool = False,
    ) -> dict[str, Any]:
        """Add a new node. Changes are in-memory until save_graph is called.

        Args:
            graph_path: Path to graph_data.json.
            id: Unique node ID (e.g., "func_myFunction").
            type: Node type (Workflow, Concept, Service, Module, Function, ...).
            label: Human-readable label.
            description: Detailed description.
            file: Optional source file path.
            line: Optional line number in file.
            inferred: Whether the node is inferred.
        """
        return _add_node(
            _state["store"],
            graph_path,
            id,
            type,
            label,
            description=description,
            file=file,
            line=line,
            inferred=inferred,
        )

    @mcp.tool()
    def add_edge(
        graph_path: str,
        source: str,
        target: str,
        type: str,
        layer: str | None = None,
        description: str | None = None,
    ) -> dict[str, Any]:
        """Add a new edge. Changes are in-memory until save_graph is called.

        Args:
            graph_path: Path to graph_data.json.
            source: Source node ID.
            target: Target node ID.
            type: Edge type (calls, uses, contains, implements, includes, ...).
            layer: Optional layer name.
            description: Optional edge description.
        """
        return _add_edge(_state["store"], graph_path, source, target, type, layer, description)

    @mcp.tool()
    def add_to_layer(graph_path: str, node_id: str, layer: str) -> dict[str, Any]:
        """Add a node to a layer. Creates the layer if it doesn't exist."""
        return _add_to_layer(_state["store"], graph_path, node_id, layer)

    @mcp.tool()
    def remove_node(graph_path: str, node_id: str) -> dict[str, Any]:
        """Remove a node and all its edges. Changes are in-memory until saved."""
        return _remove_node(_state["store"], graph_path, node_id)

    @mcp.tool()
    def remove_edge(graph_path: str, source: str, target: str, type: str) -> dict[str, Any]:
        """Remove an edge. Changes are in-memory until save_graph is called."""
        return _remove_edge(_state["store"], graph_path, source, target, type)

    # ─────────────────────────────────────────────────────────────────────
    # Session Tools
    # ─────────────────────────────────────────────────────────────────────

    @mcp.tool()
    def save_graph(
        graph_path: str,
        backup: bool | None = None,
        sort: bool | None = None,
    ) -> dict[str, Any]:
        """Save all in-memory changes to the graph file.

        Args:
            graph_path: Path to graph_data.json.
            backup: Write <graph_path>.backup first (default from config, true).
            sort: Sort edges by source and target (default from config, true).

        Returns:
            Success status, written path and backup path.
        """
        return _save_graph(
            _state["store"],
            graph_path,
            backup=backup if backup is not None else _setting("save.backup"),
            sort=sort if sort is not None else _setting("save.sort"),
            indent=_setting("save.indent"),
        )

    @mcp.tool()
    def discard_changes(graph_path: str) -> dict[str, Any]:
        """Throw away unsaved changes; the next call reloads from disk."""
        return _discard_changes(_state["store"], graph_path)

    @mcp.tool()
    def undo_last_mutation(graph_path: str) -> dict[str, Any]:
        """Undo the most recent unsaved mutation.

        Returns:
            Success status and the mutation that was undone.
        """
        return _undo_last_mutation(_state["store"], graph_path)

    @mcp.tool()
    def get_mutation_log(graph_path: str, limit: int = 50) -> dict[str, Any]:
        """Get the unsaved mutation history, oldest first.

        Args:
            graph_path: Path to graph_data.json.
            limit: Maximum number of mutations to return.
        """
        return _get_mutation_log(_state["store"], graph_path, limit)

    return mcp


def run_server(transport: str = "stdio", config: ConfigLoader | None = None) -> None:
    """Run the MCP server.

    Args:
        transport: Transport type ('stdio', 'sse' or 'streamable-http').
        config: Optional configuration.
    """
    mcp = create_server(config=config)
    mcp.run(transport=transport)
