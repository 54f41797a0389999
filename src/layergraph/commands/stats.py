"""
layergraph.commands.stats - Summarize a graph file.

Prints node/edge totals, node counts per type and layer sizes.
"""

from __future__ import annotations

import argparse
import json
from typing import Any

from layergraph.graph.builder import LayeredGraph
from layergraph.graph.query import get_node_types
from layergraph.store import GraphStore


def collect_stats(graph: LayeredGraph) -> dict[str, Any]:
    return {
        "nodes": graph.node_count(),
        "edges": graph.edge_count(),
        "types": get_node_types(graph),
        "layers": {name: len(graph.layer_members(name) or []) for name in graph.layer_names()},
    }


def run(args: argparse.Namespace) -> int:
    """Run the stats command."""
    graph = GraphStore().get(args.graph)
    stats = collect_stats(graph)

    if getattr(args, "json", False):
        print(json.dumps(stats, indent=2))
        return 0

    print(f"Nodes: {stats['nodes']}")
    print(f"Edges: {stats['edges']}")
    print("\nNode types:")
    for node_type, count in sorted(stats["types"].items(), key=lambda item: (-item[1], item[0])):
        print(f"  {node_type:<20} {count}")
    print("\nLayers:")
    for layer, size in stats["layers"].items():
        print(f"  {layer:<20} {size}")
    return 0
