"""Error kinds raised by the graph engine.

Every failure carries an ``ErrorKind`` so the tool layer can report it
without string matching. Lookup failures also subclass ``KeyError`` and
uniqueness/field failures subclass ``ValueError``, so callers that only
care about the broad category can catch the builtin type.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Logical error categories reported to callers."""

    NOT_FOUND = "NotFound"
    PARSE_ERROR = "ParseError"
    DUPLICATE_ID = "DuplicateId"
    DUPLICATE_EDGE = "DuplicateEdge"
    ALREADY_IN_LAYER = "AlreadyInLayer"
    MISSING_FIELD = "MissingField"
    UNKNOWN_NODE = "UnknownNode"
    EDGE_NOT_FOUND = "EdgeNotFound"
    LAYER_NOT_FOUND = "LayerNotFound"
    NODE_NOT_FOUND = "NodeNotFound"
    INVALID_ARGUMENT = "InvalidArgument"
    IO_ERROR = "IOError"
    NOTHING_TO_UNDO = "NothingToUndo"
    GRAPH_ERROR = "GraphError"


class GraphError(Exception):
    """Base class for all graph engine failures."""

    kind: ErrorKind = ErrorKind.GRAPH_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.message


class GraphNotFoundError(GraphError):
    """The storage location does not exist."""

    kind = ErrorKind.NOT_FOUND


class GraphParseError(GraphError, ValueError):
    """The stored bytes are not a valid graph document."""

    kind = ErrorKind.PARSE_ERROR


class DuplicateIdError(GraphError, ValueError):
    kind = ErrorKind.DUPLICATE_ID


class DuplicateEdgeError(GraphError, ValueError):
    kind = ErrorKind.DUPLICATE_EDGE


class AlreadyInLayerError(GraphError, ValueError):
    kind = ErrorKind.ALREADY_IN_LAYER


class MissingFieldError(GraphError, ValueError):
    kind = ErrorKind.MISSING_FIELD


class UnknownNodeError(GraphError, KeyError):
    """A mutation referenced a node id that is not in the graph."""

    kind = ErrorKind.UNKNOWN_NODE


class EdgeNotFoundError(GraphError, KeyError):
    kind = ErrorKind.EDGE_NOT_FOUND


class LayerNotFoundError(GraphError, KeyError):
    kind = ErrorKind.LAYER_NOT_FOUND


class NodeNotFoundError(GraphError, KeyError):
    """A lookup targeted a node id that is not in the graph."""

    kind = ErrorKind.NODE_NOT_FOUND


class InvalidArgumentError(GraphError, ValueError):
    """A query argument is outside its allowed values."""

    kind = ErrorKind.INVALID_ARGUMENT


__all__ = [
    "ErrorKind",
    "GraphError",
    "GraphNotFoundError",
    "GraphParseError",
    "DuplicateIdError",
    "DuplicateEdgeError",
    "AlreadyInLayerError",
    "MissingFieldError",
    "UnknownNodeError",
    "EdgeNotFoundError",
    "LayerNotFoundError",
    "NodeNotFoundError",
    "InvalidArgumentError",
]
