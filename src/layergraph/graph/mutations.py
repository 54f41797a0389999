"""Mutation records for LayeredGraph operations.

Every successful mutation produces a ``MutationEntry`` that is appended
to the graph's ``MutationLog``. The ``before_state`` holds enough
information to reverse the operation.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4


@dataclass
class MutationEntry:
    """Single mutation operation record.

    Attributes:
        operation: Operation name ("add_node", "remove_edge", ...).
        target_id: Primary target of the mutation (node id or edge string).
        before_state: State before the mutation (for undo).
        after_state: State after the mutation.
        id: Unique mutation ID (UUID4 hex).
        timestamp: When the mutation occurred.
    """

    operation: str
    target_id: str
    before_state: dict[str, Any]
    after_state: dict[str, Any]
    id: str = field(default_factory=lambda: uuid4().hex)
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        """Human-readable representation."""
        return f"[{self.id[:8]}] {self.operation}({self.target_id})"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "operation": self.operation,
            "target_id": self.target_id,
            "before_state": self.before_state,
            "after_state": self.after_state,
            "timestamp": self.timestamp.isoformat(),
        }


class MutationLog:
    """Append-only mutation history.

    Example:
        >>> log = MutationLog()
        >>> log.append(MutationEntry("add_node", "n1", {}, {"id": "n1"}))
        >>> len(log)
        1
    """

    def __init__(self) -> None:
        self._entries: list[MutationEntry] = []

    def append(self, entry: MutationEntry) -> None:
        self._entries.append(entry)

    def iter_entries(self) -> Iterator[MutationEntry]:
        """Iterate over all entries in chronological order."""
        yield from self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def last(self) -> MutationEntry | None:
        """Return the most recent entry, or None if empty."""
        return self._entries[-1] if self._entries else None

    def pop(self) -> MutationEntry | None:
        """Remove and return the most recent entry.

        Used internally for undo operations. Does not log the removal.
        """
        return self._entries.pop() if self._entries else None

    def clear(self) -> None:
        self._entries.clear()


__all__ = ["MutationEntry", "MutationLog"]
