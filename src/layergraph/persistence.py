"""Persistence layer - write an in-memory graph back to storage.

Saving optionally copies the current on-disk bytes to ``<path>.backup``
first (capturing the pre-mutation state), writes the document as
indented JSON, and then evicts the graph from the store so the next
access reloads exactly what was written.

Public API
----------
- ``save_graph`` - persist a graph and evict it from the store
- ``sort_edges`` - order edges by (source, target) for readable output
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from layergraph.graph.document import dump_document

if TYPE_CHECKING:
    from layergraph.graph.builder import LayeredGraph
    from layergraph.store import GraphStore

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".backup"


@dataclass
class SaveResult:
    """Outcome of a save.

    Attributes:
        success: True when the document was written.
        path: Storage location written to.
        backup: Location of the backup copy, or None if none was made.
        nodes: Node count written.
        edges: Edge count written.
        mutations: Number of in-memory mutations persisted.
    """

    success: bool
    path: str
    backup: str | None = None
    nodes: int = 0
    edges: int = 0
    mutations: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "path": self.path,
            "backup": self.backup,
            "nodes": self.nodes,
            "edges": self.edges,
            "mutations": self.mutations,
        }


def backup_path_for(path: str) -> str:
    return f"{path}{BACKUP_SUFFIX}"


def sort_edges(graph: LayeredGraph) -> None:
    """Stable-sort the document's edges by (source, target).

    Cosmetic only: the index buckets hold the same edge objects and are
    not reordered.
    """
    graph.document.edges.sort(key=lambda e: (e.source, e.target))


def save_graph(
    store: GraphStore,
    graph: LayeredGraph,
    backup: bool = True,
    sort: bool = True,
    indent: int | None = 2,
) -> SaveResult:
    """Write a graph to its storage location.

    Args:
        store: Store the graph was loaded through; its storage is written
            and its cache entry for the graph is evicted on success.
        graph: The graph to save.
        backup: Copy the current stored bytes to ``<path>.backup`` first.
        sort: Sort edges by (source, target) before writing.
        indent: JSON indentation (None for compact output).

    Returns:
        SaveResult describing what was written.

    Raises:
        ValueError: If the graph has no storage path.
        OSError: If the backup or the write fails. The graph then stays
            cached with its mutations intact.
    """
    if not graph.path:
        raise ValueError("Graph has no storage path; load it through a GraphStore")

    path = graph.path
    storage = store.storage

    backup_path = None
    if backup and storage.exists(path):
        backup_path = backup_path_for(path)
        storage.write(backup_path, storage.read(path))
        logger.debug("Backed up %s to %s", path, backup_path)

    if sort:
        sort_edges(graph)

    storage.write(path, dump_document(graph.document, indent=indent))

    result = SaveResult(
        success=True,
        path=path,
        backup=backup_path,
        nodes=graph.node_count(),
        edges=graph.edge_count(),
        mutations=len(graph.mutation_log),
    )

    # Next access reloads what is now on disk
    store.invalidate(path)
    logger.info(
        "Saved %s (%d nodes, %d edges, %d mutations)",
        path,
        result.nodes,
        result.edges,
        result.mutations,
    )
    return result
