"""GraphStore - session cache of loaded graphs.

Holds at most one in-memory LayeredGraph per storage location, keyed by
the absolute path. A graph stays cached, together with any unsaved
mutations, until it is saved, discarded or invalidated. The cache is
unbounded.

The store is an explicit object rather than module state, so a host can
run several isolated stores side by side. Operations on one location
must be serialized by the caller; the store does no locking.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from layergraph.graph.builder import GraphBuilder, LayeredGraph
from layergraph.graph.document import parse_document
from layergraph.graph.errors import GraphNotFoundError
from layergraph.storage import FileStorage, Storage

logger = logging.getLogger(__name__)


def resolve_location(location: str | Path) -> str:
    """Normalize a storage location to the absolute form used as cache key."""
    return os.path.abspath(os.path.expanduser(str(location)))


class GraphStore:
    """Process-local map from storage location to loaded graph.

    Example:
        >>> store = GraphStore()
        >>> graph = store.get("docs/graph_data.json")  # doctest: +SKIP
        >>> store.get("./docs/graph_data.json") is graph  # doctest: +SKIP
        True
    """

    def __init__(self, storage: Storage | None = None) -> None:
        self.storage: Storage = storage if storage is not None else FileStorage()
        self._graphs: dict[str, LayeredGraph] = {}

    def get(self, location: str | Path) -> LayeredGraph:
        """Return the cached graph for a location, loading it on first access.

        A cached graph is returned as-is, without re-reading storage.

        Raises:
            GraphNotFoundError: If the location does not exist.
            GraphParseError: If the stored bytes are not a valid document.
        """
        path = resolve_location(location)
        graph = self._graphs.get(path)
        if graph is not None:
            logger.debug("Cache hit: %s", path)
            return graph

        graph = self._load(path)
        self._graphs[path] = graph
        return graph

    def _load(self, path: str) -> LayeredGraph:
        if not self.storage.exists(path):
            raise GraphNotFoundError(f"Graph file not found: {path}")
        logger.debug("Loading graph: %s", path)
        document = parse_document(self.storage.read(path), source=path)
        return GraphBuilder.from_document(document, path=path).build()

    def is_loaded(self, location: str | Path) -> bool:
        return resolve_location(location) in self._graphs

    def loaded_paths(self) -> list[str]:
        return list(self._graphs)

    def invalidate(self, location: str | Path) -> bool:
        """Evict a location so the next ``get`` reloads it from storage.

        Returns:
            True if a graph was cached for the location.
        """
        return self._graphs.pop(resolve_location(location), None) is not None

    def discard(self, location: str | Path) -> int:
        """Drop a cached graph together with its unsaved mutations.

        Returns:
            Number of unsaved mutations that were thrown away (0 when the
            location was not loaded).
        """
        graph = self._graphs.pop(resolve_location(location), None)
        if graph is None:
            return 0
        pending = len(graph.mutation_log)
        if pending:
            logger.info("Discarded %d unsaved mutations for %s", pending, graph.path)
        return pending

    def clear(self) -> None:
        self._graphs.clear()

    def __len__(self) -> int:
        return len(self._graphs)

    def __contains__(self, location: object) -> bool:
        if not isinstance(location, (str, Path)):
            return False
        return self.is_loaded(location)
