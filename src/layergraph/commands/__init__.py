"""
layergraph.commands - CLI command implementations
"""

__all__ = [
    "layer_cmd",
    "path_cmd",
    "search",
    "stats",
    "verify",
]
