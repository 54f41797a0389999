"""Graph integrity verification.

Runs five independent checks over a LayeredGraph:

- every edge's source and target resolve to a node (issue per violation)
- every layer member resolves to a node (issue per violation)
- nodes with no edges at all (one aggregate warning)
- repeated (source, type, target) triples (one aggregate issue)
- nodes that belong to no layer (one aggregate warning)

Issues make the graph invalid; warnings do not.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from layergraph.graph.builder import LayeredGraph

# Number of example ids listed in aggregate warnings
EXAMPLE_COUNT = 5


@dataclass
class VerifyReport:
    """Aggregated verification results."""

    issues: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    stats: dict[str, int] = field(default_factory=dict)

    @property
    def valid(self) -> bool:
        return not self.issues

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "issues": list(self.issues),
            "warnings": list(self.warnings),
            "stats": dict(self.stats),
        }


def _examples(ids: list[str]) -> str:
    suffix = "..." if len(ids) > EXAMPLE_COUNT else ""
    return ", ".join(ids[:EXAMPLE_COUNT]) + suffix


def check_edge_endpoints(graph: LayeredGraph) -> list[str]:
    """Report every edge endpoint that does not resolve to a node."""
    issues = []
    for edge in graph.all_edges():
        if not graph.has_node(edge.source):
            issues.append(f"Edge has invalid source: {edge}")
        if not graph.has_node(edge.target):
            issues.append(f"Edge has invalid target: {edge}")
    return issues


def check_layer_members(graph: LayeredGraph) -> list[str]:
    """Report every layer member that does not resolve to a node."""
    issues = []
    for layer, members in graph.document.layers.items():
        for node_id in members:
            if not graph.has_node(node_id):
                issues.append(f"Layer {layer} references non-existent node: {node_id}")
    return issues


def find_orphaned_nodes(graph: LayeredGraph) -> list[str]:
    """Ids of nodes with neither incoming nor outgoing edges."""
    orphaned = []
    for node in graph.all_nodes():
        has_incoming = next(graph.iter_incoming_edges(node.id), None) is not None
        has_outgoing = next(graph.iter_outgoing_edges(node.id), None) is not None
        if not has_incoming and not has_outgoing:
            orphaned.append(node.id)
    return orphaned


def count_duplicate_edges(graph: LayeredGraph) -> int:
    """Count edges repeating an earlier (source, type, target) triple."""
    seen: set[tuple[str, str, str]] = set()
    duplicates = 0
    for edge in graph.all_edges():
        if edge.key in seen:
            duplicates += 1
        seen.add(edge.key)
    return duplicates


def find_nodes_without_layer(graph: LayeredGraph) -> list[str]:
    in_layers: set[str] = set()
    for members in graph.document.layers.values():
        in_layers.update(members)
    return [node.id for node in graph.all_nodes() if node.id not in in_layers]


def verify_graph(graph: LayeredGraph) -> VerifyReport:
    """Run all integrity checks and collect the results.

    Args:
        graph: The graph to verify.

    Returns:
        VerifyReport with issues, warnings and summary statistics.
    """
    report = VerifyReport()

    report.issues.extend(check_edge_endpoints(graph))
    report.issues.extend(check_layer_members(graph))

    orphaned = find_orphaned_nodes(graph)
    if orphaned:
        report.warnings.append(f"{len(orphaned)} orphaned nodes: {_examples(orphaned)}")

    duplicates = count_duplicate_edges(graph)
    if duplicates:
        report.issues.append(f"{duplicates} duplicate edges found")

    unlayered = find_nodes_without_layer(graph)
    if unlayered:
        report.warnings.append(f"{len(unlayered)} nodes not in any layer: {_examples(unlayered)}")

    report.stats = {
        "nodes": graph.node_count(),
        "edges": graph.edge_count(),
        "layers": len(graph.document.layers),
        "orphaned": len(orphaned),
    }
    return report
