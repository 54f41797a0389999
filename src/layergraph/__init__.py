"""
layergraph - In-process store for layered knowledge graphs

A layered graph is a JSON document of typed nodes, typed directed edges,
and named layers (workflow, conceptual, technical, ...) grouping node
ids. layergraph loads such documents into indexed in-memory graphs,
answers search, neighbor and path queries, applies validated mutations,
verifies integrity, and writes changes back with a backup copy.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("layergraph")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed
__license__ = "MIT"

from layergraph.graph import (
    Edge,
    GraphDocument,
    GraphError,
    GraphNode,
    LayeredGraph,
    MutationEntry,
    VerifyReport,
    verify_graph,
)
from layergraph.persistence import SaveResult, save_graph
from layergraph.storage import FileStorage, MemoryStorage, Storage
from layergraph.store import GraphStore

__all__ = [
    "__version__",
    "Edge",
    "GraphDocument",
    "GraphError",
    "GraphNode",
    "GraphStore",
    "LayeredGraph",
    "MutationEntry",
    "SaveResult",
    "save_graph",
    "Storage",
    "FileStorage",
    "MemoryStorage",
    "VerifyReport",
    "verify_graph",
]
