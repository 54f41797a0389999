"""Graph Builder - Constructs an indexed LayeredGraph from a document.

``LayeredGraph`` bundles a ``GraphDocument`` with four derived lookup
structures (node by id, nodes by type, edges by source, edges by target)
and the storage path it was loaded from. All mutations go through its
methods, which update the document and the indexes together.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from layergraph.graph.document import GraphDocument
from layergraph.graph.errors import (
    AlreadyInLayerError,
    DuplicateEdgeError,
    DuplicateIdError,
    EdgeNotFoundError,
    InvalidArgumentError,
    MissingFieldError,
    UnknownNodeError,
)
from layergraph.graph.GraphNode import NODE_FIELDS, GraphNode
from layergraph.graph.mutations import MutationEntry, MutationLog
from layergraph.graph.relations import Edge

logger = logging.getLogger(__name__)


@dataclass
class LayeredGraph:
    """An in-memory graph document plus its derived indexes.

    The indexes are exactly consistent with ``document.nodes`` and
    ``document.edges`` whenever a public method returns. Mutations
    validate fully before their first write, so a failed call leaves the
    graph unchanged.

    Attributes:
        document: The node/edge/layer data, in document order.
        path: Absolute storage location, or None for detached graphs.
    """

    document: GraphDocument = field(default_factory=GraphDocument)
    path: str | None = None

    # Internal storage (prefixed) - excluded from constructor
    _node_by_id: dict[str, GraphNode] = field(default_factory=dict, init=False, repr=False)
    _nodes_by_type: dict[str, list[GraphNode]] = field(
        default_factory=dict, init=False, repr=False
    )
    _edges_by_source: dict[str, list[Edge]] = field(default_factory=dict, init=False, repr=False)
    _edges_by_target: dict[str, list[Edge]] = field(default_factory=dict, init=False, repr=False)
    _mutation_log: MutationLog = field(default_factory=MutationLog, init=False, repr=False)

    # ─────────────────────────────────────────────────────────────────────────
    # Read API
    # ─────────────────────────────────────────────────────────────────────────

    def find_by_id(self, node_id: str) -> GraphNode | None:
        """Find node by ID, or None if absent."""
        return self._node_by_id.get(node_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._node_by_id

    def all_nodes(self) -> Iterator[GraphNode]:
        """Iterate nodes in document order."""
        yield from self.document.nodes

    def all_edges(self) -> Iterator[Edge]:
        """Iterate edges in document order."""
        yield from self.document.edges

    def node_count(self) -> int:
        return len(self.document.nodes)

    def edge_count(self) -> int:
        return len(self.document.edges)

    def node_types(self) -> Iterator[tuple[str, int]]:
        """Iterate ``(type, count)`` pairs for every indexed type."""
        for node_type, nodes in self._nodes_by_type.items():
            yield node_type, len(nodes)

    def nodes_by_type(self, node_type: str) -> Iterator[GraphNode]:
        yield from self._nodes_by_type.get(node_type, [])

    def iter_outgoing_edges(self, node_id: str) -> Iterator[Edge]:
        """Iterate edges whose source is ``node_id``, in edge-list order."""
        yield from self._edges_by_source.get(node_id, [])

    def iter_incoming_edges(self, node_id: str) -> Iterator[Edge]:
        """Iterate edges whose target is ``node_id``, in edge-list order."""
        yield from self._edges_by_target.get(node_id, [])

    def find_edge(self, source: str, target: str, edge_type: str) -> Edge | None:
        """Find the edge with the given identity triple."""
        for edge in self._edges_by_source.get(source, []):
            if edge.target == target and edge.type == edge_type:
                return edge
        return None

    def layer_names(self) -> list[str]:
        return list(self.document.layers)

    def has_layer(self, layer: str) -> bool:
        return layer in self.document.layers

    def layer_members(self, layer: str) -> list[str] | None:
        """Return a copy of a layer's membership list, or None if absent."""
        members = self.document.layers.get(layer)
        return list(members) if members is not None else None

    def layers_containing(self, node_id: str) -> list[str]:
        """Names of every layer listing ``node_id``, in layer order."""
        return [name for name, members in self.document.layers.items() if node_id in members]

    # ─────────────────────────────────────────────────────────────────────────
    # Mutation Infrastructure
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def mutation_log(self) -> MutationLog:
        """Access the mutation log for this graph."""
        return self._mutation_log

    def has_pending_changes(self) -> bool:
        """True if mutations were applied since the graph was loaded."""
        return len(self._mutation_log) > 0

    def undo_last(self) -> MutationEntry | None:
        """Undo the most recent mutation.

        Returns:
            The undone MutationEntry, or None if the log is empty.
        """
        entry = self._mutation_log.pop()
        if entry:
            self._apply_undo(entry)
            logger.debug("Undid %s on %s", entry.operation, self.path)
        return entry

    def _apply_undo(self, entry: MutationEntry) -> None:
        """Restore the graph state recorded in ``entry.before_state``."""
        handlers = {
            "add_node": self._undo_add_node,
            "add_edge": self._undo_add_edge,
            "add_to_layer": self._undo_add_to_layer,
            "remove_node": self._undo_remove_node,
            "remove_edge": self._undo_remove_edge,
        }
        handler = handlers.get(entry.operation)
        if handler is not None:
            handler(entry)

    def _undo_add_node(self, entry: MutationEntry) -> None:
        nodes = self.document.nodes
        for i in range(len(nodes) - 1, -1, -1):
            if nodes[i].id == entry.target_id:
                del nodes[i]
                break
        self._reindex()

    def _undo_add_edge(self, entry: MutationEntry) -> None:
        key = (entry.after_state["source"], entry.after_state["target"], entry.after_state["type"])
        edges = self.document.edges
        for i in range(len(edges) - 1, -1, -1):
            if edges[i].key == key:
                del edges[i]
                break
        self._reindex()

    def _undo_add_to_layer(self, entry: MutationEntry) -> None:
        layer = entry.before_state["layer"]
        members = self.document.layers.get(layer)
        if members is None:
            return
        for i in range(len(members) - 1, -1, -1):
            if members[i] == entry.target_id:
                del members[i]
                break
        if entry.before_state.get("created_layer") and not members:
            del self.document.layers[layer]

    def _undo_remove_node(self, entry: MutationEntry) -> None:
        # Ascending inserts restore the original positions
        for item in entry.before_state["nodes"]:
            self.document.nodes.insert(item["position"], GraphNode.from_dict(item["node"]))
        self._restore_edges(entry.before_state["edges"])
        for layer, positions in entry.before_state["layers"].items():
            members = self.document.layers.setdefault(layer, [])
            for position in positions:
                members.insert(position, entry.target_id)
        self._reindex()

    def _undo_remove_edge(self, entry: MutationEntry) -> None:
        self._restore_edges(entry.before_state["edges"])
        self._reindex()

    def _restore_edges(self, removed: list[dict[str, Any]]) -> None:
        for item in removed:
            self.document.edges.insert(item["position"], Edge.from_dict(item["edge"]))

    # ─────────────────────────────────────────────────────────────────────────
    # Index maintenance
    # ─────────────────────────────────────────────────────────────────────────

    def _index_node(self, node: GraphNode) -> None:
        self._node_by_id[node.id] = node
        self._nodes_by_type.setdefault(node.type, []).append(node)

    def _unindex_node(self, node: GraphNode) -> None:
        if self._node_by_id.get(node.id) is node:
            del self._node_by_id[node.id]
        bucket = self._nodes_by_type.get(node.type, [])
        bucket[:] = [n for n in bucket if n is not node]
        if not bucket:
            self._nodes_by_type.pop(node.type, None)

    def _index_edge(self, edge: Edge) -> None:
        self._edges_by_source.setdefault(edge.source, []).append(edge)
        self._edges_by_target.setdefault(edge.target, []).append(edge)

    def _unindex_edge(self, edge: Edge) -> None:
        for index, node_id in (
            (self._edges_by_source, edge.source),
            (self._edges_by_target, edge.target),
        ):
            bucket = index.get(node_id, [])
            bucket[:] = [e for e in bucket if e is not edge]
            if not bucket:
                index.pop(node_id, None)

    def _reindex(self) -> None:
        """Rebuild all four indexes from the document (one pass each)."""
        self._node_by_id.clear()
        self._nodes_by_type.clear()
        self._edges_by_source.clear()
        self._edges_by_target.clear()
        for node in self.document.nodes:
            self._index_node(node)
        for edge in self.document.edges:
            self._index_edge(edge)

    # ─────────────────────────────────────────────────────────────────────────
    # Node Mutation API
    # ─────────────────────────────────────────────────────────────────────────

    def add_node(
        self,
        node_id: str,
        node_type: str,
        label: str,
        description: str | None = None,
        file: str | None = None,
        line: int | None = None,
        inferred: bool = False,
        **extra: Any,
    ) -> MutationEntry:
        """Add a new node.

        Args:
            node_id: Unique node ID (e.g., "func_myFunction").
            node_type: Node type (Workflow, Concept, Function, ...).
            label: Human-readable label.
            description: Optional description.
            file: Optional source file path.
            line: Optional line number in ``file``.
            inferred: Whether the node is inferred (default False).
            **extra: Additional passthrough fields stored on the node.

        Returns:
            MutationEntry recording the operation.

        Raises:
            DuplicateIdError: If node_id already exists.
            MissingFieldError: If node_id, node_type or label is empty.
            InvalidArgumentError: If an extra field shadows a named field.
        """
        if node_id in self._node_by_id:
            raise DuplicateIdError(f"Node already exists: {node_id}")
        missing = [
            name
            for name, value in (("id", node_id), ("type", node_type), ("label", label))
            if not value
        ]
        if missing:
            raise MissingFieldError(f"Missing required fields: {', '.join(missing)}")
        reserved = sorted(set(extra) & set(NODE_FIELDS))
        if reserved:
            raise InvalidArgumentError(f"Reserved node fields in extra: {', '.join(reserved)}")

        node = GraphNode(
            id=node_id,
            type=node_type,
            label=label,
            description=description,
            file=file,
            line=line,
            inferred=inferred,
            extra=dict(extra),
        )
        self.document.nodes.append(node)
        self._index_node(node)

        entry = MutationEntry(
            operation="add_node",
            target_id=node_id,
            before_state={},  # Node didn't exist
            after_state=node.to_dict(),
        )
        self._mutation_log.append(entry)
        logger.debug("Added node %s", node)
        return entry

    def remove_node(self, node_id: str) -> MutationEntry:
        """Remove a node and every edge touching it.

        The node is also removed from its type bucket and from every layer
        that lists it. ``after_state["removed_edges"]`` reports how many
        edges were cascaded away.

        Raises:
            UnknownNodeError: If node_id is not found.
        """
        if node_id not in self._node_by_id:
            raise UnknownNodeError(f"Node not found: {node_id}")

        removed_nodes = [
            (i, node) for i, node in enumerate(self.document.nodes) if node.id == node_id
        ]
        removed_edges = [
            (i, edge)
            for i, edge in enumerate(self.document.edges)
            if edge.source == node_id or edge.target == node_id
        ]
        layer_positions = {
            layer: [i for i, member in enumerate(members) if member == node_id]
            for layer, members in self.document.layers.items()
            if node_id in members
        }

        entry = MutationEntry(
            operation="remove_node",
            target_id=node_id,
            before_state={
                "nodes": [{"position": i, "node": n.to_dict()} for i, n in removed_nodes],
                "edges": [{"position": i, "edge": e.to_dict()} for i, e in removed_edges],
                "layers": layer_positions,
            },
            after_state={
                "removed_edges": len(removed_edges),
                "layers": list(layer_positions),
            },
        )

        # Cascade edges first so no index bucket points at a removed node
        dropped = {id(edge) for _, edge in removed_edges}
        self.document.edges[:] = [e for e in self.document.edges if id(e) not in dropped]
        for _, edge in removed_edges:
            self._unindex_edge(edge)

        self.document.nodes[:] = [n for n in self.document.nodes if n.id != node_id]
        for _, node in removed_nodes:
            self._unindex_node(node)
        self._node_by_id.pop(node_id, None)

        for layer in layer_positions:
            members = self.document.layers[layer]
            members[:] = [m for m in members if m != node_id]

        self._mutation_log.append(entry)
        logger.debug("Removed node %s (%d edges cascaded)", node_id, len(removed_edges))
        return entry

    # ─────────────────────────────────────────────────────────────────────────
    # Edge Mutation API
    # ─────────────────────────────────────────────────────────────────────────

    def add_edge(
        self,
        source: str,
        target: str,
        edge_type: str,
        layer: str | None = None,
        description: str | None = None,
    ) -> MutationEntry:
        """Add a new edge.

        Args:
            source: Source node ID.
            target: Target node ID.
            edge_type: Edge type (calls, uses, contains, includes, ...).
            layer: Optional layer tag for the edge.
            description: Optional edge description.

        Returns:
            MutationEntry recording the operation.

        Raises:
            UnknownNodeError: If source or target is not found.
            MissingFieldError: If edge_type is empty.
            DuplicateEdgeError: If an edge with the same
                (source, target, type) already exists.
        """
        if source not in self._node_by_id:
            raise UnknownNodeError(f"Source node not found: {source}")
        if target not in self._node_by_id:
            raise UnknownNodeError(f"Target node not found: {target}")
        if not edge_type:
            raise MissingFieldError("Missing required field: type")
        if self.find_edge(source, target, edge_type) is not None:
            raise DuplicateEdgeError(f"Edge already exists: {source} --{edge_type}--> {target}")

        edge = Edge(
            source=source,
            target=target,
            type=edge_type,
            layer=layer or None,
            description=description or None,
        )
        self.document.edges.append(edge)
        self._index_edge(edge)

        entry = MutationEntry(
            operation="add_edge",
            target_id=str(edge),
            before_state={},
            after_state=edge.to_dict(),
        )
        self._mutation_log.append(entry)
        logger.debug("Added edge %s", edge)
        return entry

    def remove_edge(self, source: str, target: str, edge_type: str) -> MutationEntry:
        """Remove the edge identified by (source, target, type).

        Raises:
            EdgeNotFoundError: If no such edge exists.
        """
        if self.find_edge(source, target, edge_type) is None:
            raise EdgeNotFoundError(f"Edge not found: {source} --{edge_type}--> {target}")

        key = (source, target, edge_type)
        # A hand-edited document may hold the same triple more than once
        removed = [(i, e) for i, e in enumerate(self.document.edges) if e.key == key]

        entry = MutationEntry(
            operation="remove_edge",
            target_id=f"{source} --{edge_type}--> {target}",
            before_state={
                "edges": [{"position": i, "edge": e.to_dict()} for i, e in removed],
            },
            after_state={"source": source, "target": target, "type": edge_type},
        )

        self.document.edges[:] = [e for e in self.document.edges if e.key != key]
        for _, edge in removed:
            self._unindex_edge(edge)

        self._mutation_log.append(entry)
        logger.debug("Removed edge %s", entry.target_id)
        return entry

    # ─────────────────────────────────────────────────────────────────────────
    # Layer Mutation API
    # ─────────────────────────────────────────────────────────────────────────

    def add_to_layer(self, node_id: str, layer: str) -> MutationEntry:
        """Add a node to a layer, creating the layer if it doesn't exist.

        Raises:
            UnknownNodeError: If node_id is not found.
            MissingFieldError: If layer is empty.
            AlreadyInLayerError: If the node is already listed in the layer.
        """
        if node_id not in self._node_by_id:
            raise UnknownNodeError(f"Node not found: {node_id}")
        if not layer:
            raise MissingFieldError("Missing required field: layer")

        members = self.document.layers.get(layer)
        if members is not None and node_id in members:
            raise AlreadyInLayerError(f"Node already in layer: {node_id} in {layer}")

        created = members is None
        if members is None:
            members = self.document.layers[layer] = []
        members.append(node_id)

        entry = MutationEntry(
            operation="add_to_layer",
            target_id=node_id,
            before_state={"layer": layer, "created_layer": created},
            after_state={"layer": layer, "node_id": node_id},
        )
        self._mutation_log.append(entry)
        logger.debug("Added %s to layer %s", node_id, layer)
        return entry


class GraphBuilder:
    """Builder for constructing an indexed LayeredGraph.

    Example:
        >>> builder = GraphBuilder()
        >>> builder.add_node(GraphNode(id="a", type="Concept", label="A"))
        >>> graph = builder.build()
        >>> graph.node_count()
        1
    """

    def __init__(self, path: str | None = None) -> None:
        self._path = path
        self._document = GraphDocument()

    @classmethod
    def from_document(cls, document: GraphDocument, path: str | None = None) -> GraphBuilder:
        """Start from an already parsed document (taken over, not copied)."""
        builder = cls(path)
        builder._document = document
        return builder

    def add_node(self, node: GraphNode) -> None:
        self._document.nodes.append(node)

    def add_edge(self, edge: Edge) -> None:
        self._document.edges.append(edge)

    def set_layer(self, layer: str, node_ids: list[str]) -> None:
        self._document.layers[layer] = list(node_ids)

    def build(self) -> LayeredGraph:
        """Index the document and return the graph.

        One pass over nodes fills the id and type indexes; one pass over
        edges fills the source and target indexes. References to missing
        nodes are kept (``verify_graph`` reports them).
        """
        graph = LayeredGraph(document=self._document, path=self._path)
        graph._reindex()

        if len(graph._node_by_id) != graph.node_count():
            logger.warning(
                "%s: %d nodes share an id with another node",
                self._path or "<memory>",
                graph.node_count() - len(graph._node_by_id),
            )
        logger.debug(
            "Indexed %s: %d nodes, %d edges, %d layers",
            self._path or "<memory>",
            graph.node_count(),
            graph.edge_count(),
            len(self._document.layers),
        )
        return graph
