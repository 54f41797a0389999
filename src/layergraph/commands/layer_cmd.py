"""
layergraph.commands.layer_cmd - List the nodes of one layer.
"""

from __future__ import annotations

import argparse
import json

from layergraph.graph.query import list_layer
from layergraph.store import GraphStore


def run(args: argparse.Namespace) -> int:
    """Run the layer command."""
    graph = GraphStore().get(args.graph)
    nodes = list_layer(graph, args.name)

    if getattr(args, "json", False):
        print(json.dumps([node.to_dict() for node in nodes], indent=2))
        return 0

    for node in nodes:
        print(f"{node.id} ({node.type})")
    return 0
