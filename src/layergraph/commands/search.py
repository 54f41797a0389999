"""
layergraph.commands.search - Keyword search from the command line.
"""

from __future__ import annotations

import argparse
import json

from layergraph.config import get_config
from layergraph.graph.query import search_nodes
from layergraph.store import GraphStore


def run(args: argparse.Namespace) -> int:
    """Run the search command."""
    config = get_config(getattr(args, "config", None))
    limit = args.limit if args.limit is not None else config.get("search.limit")

    graph = GraphStore().get(args.graph)
    results = search_nodes(graph, args.query, node_type=args.type, layer=args.layer, limit=limit)

    if getattr(args, "json", False):
        print(json.dumps([node.to_dict() for node in results], indent=2))
        return 0

    if not results:
        print(f"No nodes match '{args.query}'.")
        return 0

    for node in results:
        label = f"  {node.label}" if node.label else ""
        print(f"{node.id} ({node.type}){label}")
    if not getattr(args, "quiet", False):
        print(f"\n{len(results)} result(s)")
    return 0
