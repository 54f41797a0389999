"""Graph Document - the persisted node/edge/layer data.

Converts between the on-disk JSON layout::

    {"nodes": [...], "edges": [...], "layers": {name: [node_id, ...]}}

and the in-memory ``GraphDocument``. Top-level keys other than the three
above are kept in ``extra`` and written back unchanged.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from layergraph.graph.errors import GraphParseError
from layergraph.graph.GraphNode import GraphNode
from layergraph.graph.relations import Edge

DOCUMENT_FIELDS = ("nodes", "edges", "layers")


@dataclass
class GraphDocument:
    """Nodes, edges and named layers, in document order."""

    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    layers: dict[str, list[str]] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> GraphDocument:
        """Build a document from decoded JSON.

        ``layers`` defaults to an empty mapping and ``nodes``/``edges`` to
        empty lists when absent.

        Raises:
            GraphParseError: If the structure does not match the schema.
        """
        if not isinstance(data, dict):
            raise GraphParseError(
                f"Graph document must be a JSON object, got {type(data).__name__}"
            )

        raw_nodes = data.get("nodes", [])
        raw_edges = data.get("edges", [])
        raw_layers = data.get("layers") or {}
        if not isinstance(raw_nodes, list):
            raise GraphParseError("'nodes' must be a list")
        if not isinstance(raw_edges, list):
            raise GraphParseError("'edges' must be a list")
        if not isinstance(raw_layers, dict):
            raise GraphParseError("'layers' must be an object mapping layer names to id lists")

        layers: dict[str, list[str]] = {}
        for name, members in raw_layers.items():
            if not isinstance(members, list) or not all(isinstance(m, str) for m in members):
                raise GraphParseError(f"Layer '{name}' must be a list of node ids")
            layers[name] = list(members)

        return cls(
            nodes=[GraphNode.from_dict(n) for n in raw_nodes],
            edges=[Edge.from_dict(e) for e in raw_edges],
            layers=layers,
            extra={k: v for k, v in data.items() if k not in DOCUMENT_FIELDS},
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON-compatible on-disk layout."""
        result: dict[str, Any] = {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
            "layers": {name: list(members) for name, members in self.layers.items()},
        }
        result.update(self.extra)
        return result


def parse_document(raw: bytes | str, source: str = "<memory>") -> GraphDocument:
    """Decode stored bytes into a GraphDocument.

    Args:
        raw: UTF-8 JSON bytes (or an already decoded string).
        source: Location name used in error messages.

    Raises:
        GraphParseError: If the bytes are not valid UTF-8 JSON or do not
            follow the document schema.
    """
    try:
        text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
        data = json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise GraphParseError(f"Failed to parse graph {source}: {e}") from e

    try:
        return GraphDocument.from_dict(data)
    except GraphParseError as e:
        raise GraphParseError(f"Invalid graph {source}: {e}") from e


def dump_document(document: GraphDocument, indent: int | None = 2) -> bytes:
    """Encode a GraphDocument as pretty-printed UTF-8 JSON."""
    return json.dumps(document.to_dict(), indent=indent, ensure_ascii=False).encode("utf-8")
