"""Relations - Typed edges between graph nodes.

Edges refer to nodes by id. Edge identity is the
``(source, target, type)`` triple; the optional ``layer`` and
``description`` are informational only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from layergraph.graph.errors import GraphParseError

EDGE_FIELDS = ("source", "target", "type", "layer", "description")

EdgeKey = tuple[str, str, str]


@dataclass
class Edge:
    """A typed, directed edge between two nodes.

    Attributes:
        source: Id of the node the edge starts from.
        target: Id of the node the edge points to.
        type: Relationship type (calls, uses, contains, includes, ...).
        layer: Optional layer tag, e.g. "workflow-to-conceptual".
        description: Optional free text.
        extra: Passthrough fields not modelled above.
    """

    source: str
    target: str
    type: str
    layer: str | None = None
    description: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> EdgeKey:
        """The identity triple of this edge."""
        return (self.source, self.target, self.type)

    def __eq__(self, other: object) -> bool:
        """Check equality based on source, target, and type."""
        if not isinstance(other, Edge):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __str__(self) -> str:
        return f"{self.source} --{self.type}--> {self.target}"

    @classmethod
    def from_dict(cls, data: Any) -> Edge:
        """Build an edge from its stored JSON object.

        Raises:
            GraphParseError: If ``data`` is not an object or lacks a string
                ``source``, ``target`` or ``type``.
        """
        if not isinstance(data, dict):
            raise GraphParseError(f"Edge entry must be an object, got {type(data).__name__}")
        for key in ("source", "target", "type"):
            if not isinstance(data.get(key), str):
                raise GraphParseError(f"Edge entry is missing string field '{key}': {data!r}")
        return cls(
            source=data["source"],
            target=data["target"],
            type=data["type"],
            layer=data.get("layer"),
            description=data.get("description"),
            extra={k: v for k, v in data.items() if k not in EDGE_FIELDS},
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the stored JSON form, omitting unset optional fields."""
        result: dict[str, Any] = {
            "source": self.source,
            "target": self.target,
            "type": self.type,
        }
        if self.layer is not None:
            result["layer"] = self.layer
        if self.description is not None:
            result["description"] = self.description
        result.update((k, v) for k, v in self.extra.items() if k not in EDGE_FIELDS)
        return result
