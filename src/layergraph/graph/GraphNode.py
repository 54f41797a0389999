"""GraphNode - Node representation for the layered graph.

A node has three required fields (id, type, label), a closed set of
optional metadata fields, and an ``extra`` mapping that carries any
other keys found in the stored document so they survive a save.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from layergraph.graph.errors import GraphParseError

# Serialization order of the named fields
NODE_FIELDS = ("id", "type", "label", "description", "file", "line", "inferred")


@dataclass
class GraphNode:
    """A node in the layered graph.

    Attributes:
        id: Unique identifier within a graph document.
        type: Node type (Workflow, Concept, Function, ...).
        label: Human-readable display label.
        description: Optional free text, included in search.
        file: Optional source file the node was derived from.
        line: Optional line number in ``file``.
        inferred: Whether the node was inferred rather than observed.
            ``None`` means the stored document did not say.
        extra: Passthrough fields not modelled above.
    """

    id: str
    type: str
    label: str | None = None
    description: str | None = None
    file: str | None = None
    line: int | None = None
    inferred: bool | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> GraphNode:
        """Build a node from its stored JSON object.

        Raises:
            GraphParseError: If ``data`` is not an object or lacks a string
                ``id`` or ``type``.
        """
        if not isinstance(data, dict):
            raise GraphParseError(f"Node entry must be an object, got {type(data).__name__}")
        for key in ("id", "type"):
            if not isinstance(data.get(key), str):
                raise GraphParseError(f"Node entry is missing string field '{key}': {data!r}")
        return cls(
            id=data["id"],
            type=data["type"],
            label=data.get("label"),
            description=data.get("description"),
            file=data.get("file"),
            line=data.get("line"),
            inferred=data.get("inferred"),
            extra={k: v for k, v in data.items() if k not in NODE_FIELDS},
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the stored JSON form, omitting unset optional fields."""
        result: dict[str, Any] = {"id": self.id, "type": self.type}
        for key in NODE_FIELDS[2:]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        result.update((k, v) for k, v in self.extra.items() if k not in NODE_FIELDS)
        return result

    def search_text(self) -> str:
        """Text matched by keyword search: id, label and description."""
        return f"{self.id} {self.label or ''} {self.description or ''}"

    def __str__(self) -> str:
        return f"{self.id} ({self.type})"
