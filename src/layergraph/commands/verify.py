"""
layergraph.commands.verify - Check a graph file for integrity problems.

Exit code is 1 when any issue (dangling edge endpoint, dangling layer
member, duplicate edge) is found. Warnings alone do not fail.
"""

from __future__ import annotations

import argparse
import json

from layergraph.graph.verify import VerifyReport, verify_graph
from layergraph.store import GraphStore


def format_report(report: VerifyReport) -> str:
    """Render a report as human-readable text."""
    stats = report.stats
    lines = [
        f"Nodes: {stats['nodes']}  Edges: {stats['edges']}  "
        f"Layers: {stats['layers']}  Orphaned: {stats['orphaned']}",
    ]
    for issue in report.issues:
        lines.append(f"ERROR   {issue}")
    for warning in report.warnings:
        lines.append(f"WARNING {warning}")
    if report.valid:
        lines.append("Graph is valid.")
    else:
        lines.append(f"Found {len(report.issues)} issue(s).")
    return "\n".join(lines)


def run(args: argparse.Namespace) -> int:
    """Run the verify command."""
    graph = GraphStore().get(args.graph)
    report = verify_graph(graph)

    if getattr(args, "json", False):
        print(json.dumps(report.to_dict(), indent=2))
    elif not (getattr(args, "quiet", False) and report.valid):
        print(format_report(report))

    return 0 if report.valid else 1
