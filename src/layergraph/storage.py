"""Byte storage used to load and save graph documents.

The engine only needs three synchronous calls: ``exists``, ``read`` and
``write``. ``FileStorage`` is the default; ``MemoryStorage`` keeps bytes
in a dict, which is handy for tests and for embedding.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class Storage(Protocol):
    """Protocol for byte-level storage backends.

    Locations are absolute path strings. A ``write`` followed by a
    ``read`` of the same location must return the new bytes.
    """

    def exists(self, location: str) -> bool:
        ...

    def read(self, location: str) -> bytes:
        ...

    def write(self, location: str, data: bytes) -> None:
        ...


class FileStorage:
    """Storage backed by the local filesystem."""

    def exists(self, location: str) -> bool:
        return Path(location).is_file()

    def read(self, location: str) -> bytes:
        return Path(location).read_bytes()

    def write(self, location: str, data: bytes) -> None:
        path = Path(location)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)


class MemoryStorage:
    """Storage that keeps every location's bytes in memory."""

    def __init__(self, files: dict[str, bytes] | None = None) -> None:
        self.files: dict[str, bytes] = dict(files or {})

    def exists(self, location: str) -> bool:
        return location in self.files

    def read(self, location: str) -> bytes:
        try:
            return self.files[location]
        except KeyError:
            raise FileNotFoundError(location) from None

    def write(self, location: str, data: bytes) -> None:
        self.files[location] = bytes(data)


__all__ = ["Storage", "FileStorage", "MemoryStorage"]
