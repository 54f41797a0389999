"""
layergraph.commands.path_cmd - Find directed paths between two nodes.
"""

from __future__ import annotations

import argparse
import json
import sys

from layergraph.config import get_config
from layergraph.graph.query import find_path
from layergraph.store import GraphStore


def run(args: argparse.Namespace) -> int:
    """Run the path command.

    Returns 1 when no path exists within the depth limit.
    """
    config = get_config(getattr(args, "config", None))
    max_depth = args.max_depth if args.max_depth is not None else config.get("paths.max_depth")

    graph = GraphStore().get(args.graph)
    paths = find_path(
        graph,
        args.from_id,
        args.to_id,
        max_depth=max_depth,
        max_paths=config.get("paths.max_paths"),
    )

    if getattr(args, "json", False):
        print(json.dumps(paths, indent=2))
    elif not paths:
        print(
            f"No path from {args.from_id} to {args.to_id} within depth {max_depth}.",
            file=sys.stderr,
        )
    else:
        for path in paths:
            print(" -> ".join(path))

    return 0 if paths else 1
