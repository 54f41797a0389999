"""Query Engine - read-only operations over a LayeredGraph.

Provides keyword search, node context lookup, neighbor traversal,
breadth-first path finding, type statistics and layer listing. None of
these functions modify the graph.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any

from layergraph.graph.builder import LayeredGraph
from layergraph.graph.errors import InvalidArgumentError, LayerNotFoundError
from layergraph.graph.GraphNode import GraphNode

logger = logging.getLogger(__name__)

DIRECTIONS = ("incoming", "outgoing", "both")

DEFAULT_SEARCH_LIMIT = 20
DEFAULT_MAX_DEPTH = 5
DEFAULT_MAX_PATHS = 3


@dataclass
class Neighbor:
    """A node adjacent to the queried node through one edge."""

    node: GraphNode
    edge_type: str
    direction: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "node": self.node.to_dict(),
            "edgeType": self.edge_type,
            "direction": self.direction,
        }


@dataclass
class NodeContext:
    """A node together with its resolved connections.

    Attributes:
        node: The node itself.
        incoming: ``(source node, edge type)`` for each edge targeting it.
        outgoing: ``(target node, edge type)`` for each edge leaving it.
        layer: The first layer (in layer order) listing the node, or None.
        layers: Every layer listing the node. ``layer`` is kept for
            callers that expect a single layer name.
    """

    node: GraphNode
    incoming: list[tuple[GraphNode, str]] = field(default_factory=list)
    outgoing: list[tuple[GraphNode, str]] = field(default_factory=list)
    layer: str | None = None
    layers: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "node": self.node.to_dict(),
            "incoming": [{**n.to_dict(), "edgeType": t} for n, t in self.incoming],
            "outgoing": [{**n.to_dict(), "edgeType": t} for n, t in self.outgoing],
            "layer": self.layer,
            "layers": list(self.layers),
        }


def search_nodes(
    graph: LayeredGraph,
    query: str,
    node_type: str | None = None,
    layer: str | None = None,
    limit: int = DEFAULT_SEARCH_LIMIT,
) -> list[GraphNode]:
    """Search nodes by keyword.

    Case-insensitive substring match against the node's id, label and
    description. Results keep document order and are truncated at
    ``limit``; they are not ranked.

    Args:
        graph: The graph to search.
        query: Search keyword.
        node_type: Only consider nodes of exactly this type.
        layer: Only consider members of this layer. A layer name that does
            not exist applies no filter.
        limit: Maximum number of results.
    """
    query_lower = query.lower()
    members = graph.document.layers.get(layer) if layer else None
    member_set = set(members) if members is not None else None

    results: list[GraphNode] = []
    if limit <= 0:
        return results

    for node in graph.all_nodes():
        if node_type and node.type != node_type:
            continue
        if member_set is not None and node.id not in member_set:
            continue
        if query_lower in node.search_text().lower():
            results.append(node)
            if len(results) >= limit:
                break
    return results


def find_node_layer(graph: LayeredGraph, node_id: str) -> str | None:
    """Return the first layer listing ``node_id``, or None."""
    for layer, members in graph.document.layers.items():
        if node_id in members:
            return layer
    return None


def get_node(graph: LayeredGraph, node_id: str) -> NodeContext | None:
    """Get a node with its incoming and outgoing neighbors.

    Returns:
        NodeContext, or None if the node does not exist.
    """
    node = graph.find_by_id(node_id)
    if node is None:
        return None

    incoming: list[tuple[GraphNode, str]] = []
    for edge in graph.iter_incoming_edges(node_id):
        source = graph.find_by_id(edge.source)
        if source is not None:
            incoming.append((source, edge.type))

    outgoing: list[tuple[GraphNode, str]] = []
    for edge in graph.iter_outgoing_edges(node_id):
        target = graph.find_by_id(edge.target)
        if target is not None:
            outgoing.append((target, edge.type))

    return NodeContext(
        node=node,
        incoming=incoming,
        outgoing=outgoing,
        layer=find_node_layer(graph, node_id),
        layers=graph.layers_containing(node_id),
    )


def get_neighbors(
    graph: LayeredGraph,
    node_id: str,
    direction: str = "both",
    edge_type: str | None = None,
) -> list[Neighbor]:
    """Get nodes connected to ``node_id``.

    Incoming neighbors come first, then outgoing ones, each in edge-list
    order. Edges whose other endpoint is missing are skipped.

    Raises:
        InvalidArgumentError: If direction is not incoming, outgoing or
            both (also a ValueError).
    """
    if direction not in DIRECTIONS:
        raise InvalidArgumentError(f"Invalid direction '{direction}'. Must be one of: {DIRECTIONS}")

    neighbors: list[Neighbor] = []

    if direction in ("incoming", "both"):
        for edge in graph.iter_incoming_edges(node_id):
            if edge_type and edge.type != edge_type:
                continue
            source = graph.find_by_id(edge.source)
            if source is None:
                logger.warning("Skipping edge %s: source node missing", edge)
                continue
            neighbors.append(Neighbor(node=source, edge_type=edge.type, direction="incoming"))

    if direction in ("outgoing", "both"):
        for edge in graph.iter_outgoing_edges(node_id):
            if edge_type and edge.type != edge_type:
                continue
            target = graph.find_by_id(edge.target)
            if target is None:
                logger.warning("Skipping edge %s: target node missing", edge)
                continue
            neighbors.append(Neighbor(node=target, edge_type=edge.type, direction="outgoing"))

    return neighbors


def find_path(
    graph: LayeredGraph,
    from_id: str,
    to_id: str,
    max_depth: int = DEFAULT_MAX_DEPTH,
    max_paths: int = DEFAULT_MAX_PATHS,
) -> list[list[str]]:
    """Find directed paths between two nodes (breadth-first).

    Only outgoing edges are followed. A partial path holding more than
    ``max_depth`` nodes is dropped without expansion. Nodes are marked
    visited when enqueued, so no node repeats within a path. Search stops
    as soon as ``max_paths`` paths have been found.

    Returns:
        List of paths, each an ordered list of node ids. Empty if none.
    """
    if from_id == to_id:
        return [[from_id]]

    queue: deque[list[str]] = deque([[from_id]])
    visited = {from_id}
    paths: list[list[str]] = []

    while queue:
        path = queue.popleft()
        if len(path) > max_depth:
            continue

        for edge in graph.iter_outgoing_edges(path[-1]):
            step = edge.target
            if step == to_id:
                paths.append([*path, step])
                if len(paths) >= max_paths:
                    return paths
                continue
            if step not in visited:
                visited.add(step)
                queue.append([*path, step])

    return paths


def get_node_types(graph: LayeredGraph) -> dict[str, int]:
    """Count nodes per type."""
    return dict(graph.node_types())


def list_layer(graph: LayeredGraph, layer: str) -> list[GraphNode]:
    """List the nodes of a layer in membership order.

    Ids that do not resolve to a node are skipped.

    Raises:
        LayerNotFoundError: If the layer does not exist.
    """
    members = graph.layer_members(layer)
    if members is None:
        raise LayerNotFoundError(f"Layer not found: {layer}")

    nodes: list[GraphNode] = []
    for node_id in members:
        node = graph.find_by_id(node_id)
        if node is not None:
            nodes.append(node)
    return nodes
