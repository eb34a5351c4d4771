"""File-system access used by the router.

The router only needs three blocking calls. Keeping them behind a
protocol lets tests count reads without touching the real disk layer.
"""

from pathlib import Path
from typing import Protocol


class FileSystem(Protocol):
    """Synchronous file-system operations keyed by absolute path."""

    def exists(self, path: Path) -> bool: ...

    def is_dir(self, path: Path) -> bool: ...

    def read_bytes(self, path: Path) -> bytes: ...


class LocalFileSystem:
    """FileSystem backed by ``pathlib``.

    ``exists`` and ``is_dir`` swallow nothing: pathlib already reports
    a missing path as False, and permission errors propagate from
    ``read_bytes``.
    """

    __slots__ = ()

    def exists(self, path: Path) -> bool:
        return path.exists()

    def is_dir(self, path: Path) -> bool:
        return path.is_dir()

    def read_bytes(self, path: Path) -> bytes:
        return path.read_bytes()
