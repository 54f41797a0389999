"""
layergraph.cli - Command-line interface.

Main entry point for the layergraph CLI tool.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from layergraph import __version__
from layergraph.commands import layer_cmd, path_cmd, search, stats, verify


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="layergraph",
        description="Query, verify and serve layered knowledge graphs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  layergraph verify docs/graph_data.json          # Integrity check
  layergraph stats docs/graph_data.json           # Node types and layer sizes
  layergraph search docs/graph_data.json auth     # Keyword search
  layergraph path docs/graph_data.json a b        # Directed paths from a to b
  layergraph layer docs/graph_data.json workflow  # Nodes of one layer
  layergraph mcp serve                            # Start the MCP server

Configuration:
  Settings are read from .layergraph.toml (searched upward to the git
  root), .layergraph.local.toml, and LAYERGRAPH_<SECTION>_<KEY>
  environment variables.

For detailed command help: layergraph <command> --help
        """,
    )

    # Global options
    parser.add_argument(
        "--version",
        action="version",
        version=f"layergraph {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration file",
        metavar="PATH",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output (debug logging, tracebacks on error)",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-error output",
    )

    # Subcommands
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # verify command
    verify_parser = subparsers.add_parser(
        "verify",
        help="Check a graph file for integrity issues",
    )
    verify_parser.add_argument("graph", help="Path to graph_data.json")
    verify_parser.add_argument("--json", action="store_true", help="Output report as JSON")

    # stats command
    stats_parser = subparsers.add_parser(
        "stats",
        help="Show node, edge, type and layer counts",
    )
    stats_parser.add_argument("graph", help="Path to graph_data.json")
    stats_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # search command
    search_parser = subparsers.add_parser(
        "search",
        help="Search nodes by keyword",
    )
    search_parser.add_argument("graph", help="Path to graph_data.json")
    search_parser.add_argument("query", help="Keyword matched against id, label and description")
    search_parser.add_argument("--type", help="Only nodes of this type")
    search_parser.add_argument("--layer", help="Only nodes in this layer")
    search_parser.add_argument(
        "--limit",
        type=int,
        help="Maximum results (default: search.limit from config)",
    )
    search_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # path command
    path_parser = subparsers.add_parser(
        "path",
        help="Find directed paths between two nodes",
    )
    path_parser.add_argument("graph", help="Path to graph_data.json")
    path_parser.add_argument("from_id", metavar="FROM", help="Start node ID")
    path_parser.add_argument("to_id", metavar="TO", help="End node ID")
    path_parser.add_argument(
        "--max-depth",
        type=int,
        help="Maximum path length (default: paths.max_depth from config)",
    )
    path_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # layer command
    layer_parser = subparsers.add_parser(
        "layer",
        help="List the nodes of a layer",
    )
    layer_parser.add_argument("graph", help="Path to graph_data.json")
    layer_parser.add_argument("name", help="Layer name")
    layer_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # mcp command
    mcp_parser = subparsers.add_parser(
        "mcp",
        help="MCP server commands (requires layergraph[mcp])",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
MCP client configuration:

    {
      "mcpServers": {
        "layergraph": {
          "command": "layergraph",
          "args": ["mcp", "serve"]
        }
      }
    }

Tools:
  search_graph, get_node, get_neighbors, find_path, get_node_types,
  list_layer, verify_graph                  Read operations
  add_node, add_edge, add_to_layer,
  remove_node, remove_edge                  In-memory mutations
  save_graph, discard_changes,
  undo_last_mutation, get_mutation_log      Session control
""",
    )
    mcp_subparsers = mcp_parser.add_subparsers(dest="mcp_action")

    # mcp serve
    mcp_serve = mcp_subparsers.add_parser(
        "serve",
        help="Start MCP server",
    )
    mcp_serve.add_argument(
        "--transport",
        choices=["stdio", "sse", "streamable-http"],
        default="stdio",
        help="Transport type (default: stdio)",
    )

    return parser


def configure_logging(args: argparse.Namespace) -> None:
    """Send log records to stderr at the configured level.

    ``--verbose`` forces DEBUG and ``--quiet`` forces ERROR; otherwise
    ``logging.level`` from the configuration applies.
    """
    from layergraph.config import get_config

    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.ERROR
    else:
        name = str(get_config(args.config).get("logging.level", "WARNING")).upper()
        level = getattr(logging, name, logging.WARNING)

    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
        force=True,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    # Handle no command
    if not args.command:
        parser.print_help()
        return 0

    try:
        configure_logging(args)

        # Dispatch to command handlers
        if args.command == "verify":
            return verify.run(args)
        elif args.command == "stats":
            return stats.run(args)
        elif args.command == "search":
            return search.run(args)
        elif args.command == "path":
            return path_cmd.run(args)
        elif args.command == "layer":
            return layer_cmd.run(args)
        elif args.command == "mcp":
            return mcp_command(args)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled.", file=sys.stderr)
        return 130
    except Exception as e:
        if args.verbose:
            raise
        print(f"Error: {e}", file=sys.stderr)
        return 1


def mcp_command(args: argparse.Namespace) -> int:
    """Handle MCP server commands."""
    from layergraph.mcp import INSTALL_HINT, MCP_AVAILABLE

    if not MCP_AVAILABLE:
        print(f"Error: {INSTALL_HINT}", file=sys.stderr)
        return 1

    if args.mcp_action == "serve":
        from layergraph.config import get_config
        from layergraph.mcp import run_server

        # stdout carries the stdio transport
        print("Starting layergraph MCP server...", file=sys.stderr)
        print(f"Transport: {args.transport}", file=sys.stderr)

        try:
            run_server(transport=args.transport, config=get_config(args.config))
        except KeyboardInterrupt:
            print("\nServer stopped.", file=sys.stderr)
        return 0
    else:
        print("Usage: layergraph mcp serve", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
