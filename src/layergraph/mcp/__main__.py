"""Entry point for running the layergraph MCP server directly.

Usage:
    python -m layergraph.mcp
"""

from layergraph.mcp.server import run_server

if __name__ == "__main__":
    run_server()
