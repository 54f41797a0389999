"""Graph module - Core graph data structures and engine.

Exports:
- GraphNode: Node with required id/type/label and optional metadata
- Edge: Typed, directed edge identified by (source, target, type)
- GraphDocument: Persisted nodes, edges and layers
- LayeredGraph: Document plus derived indexes and the mutation API
- GraphBuilder: Builds an indexed LayeredGraph
- MutationEntry / MutationLog: Mutation audit trail
- VerifyReport / verify_graph: Integrity checks
"""

from layergraph.graph.builder import GraphBuilder, LayeredGraph
from layergraph.graph.document import GraphDocument, dump_document, parse_document
from layergraph.graph.errors import ErrorKind, GraphError
from layergraph.graph.GraphNode import GraphNode
from layergraph.graph.mutations import MutationEntry, MutationLog
from layergraph.graph.relations import Edge
from layergraph.graph.verify import VerifyReport, verify_graph

__all__ = [
    "GraphNode",
    "Edge",
    "GraphDocument",
    "parse_document",
    "dump_document",
    "LayeredGraph",
    "GraphBuilder",
    "MutationEntry",
    "MutationLog",
    "ErrorKind",
    "GraphError",
    "VerifyReport",
    "verify_graph",
]
