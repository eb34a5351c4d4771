"""Per-router content cache.

Maps a resolved file path to its rewritten text. Entries are filled on
first read and live as long as the cache object; a file changed on
disk is not picked up again until ``clear()``.

No lock: two requests racing on the same cold path both load and the
last write wins. The loaded values are identical, so nothing observable
breaks.
"""

from collections.abc import Callable, Iterator
from pathlib import Path


class ContentCache:
    """Unbounded path -> text cache owned by one router instance."""

    __slots__ = ("_entries", "hits", "misses")

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}
        self.hits = 0
        self.misses = 0

    def get(self, key: str | Path) -> str | None:
        return self._entries.get(str(key))

    def put(self, key: str | Path, content: str) -> None:
        self._entries[str(key)] = content

    def get_or_load(self, key: str | Path, loader: Callable[[], str]) -> str:
        """Return the cached content for *key*, calling *loader* on a miss."""
        content = self._entries.get(str(key))
        if content is not None:
            self.hits += 1
            return content
        self.misses += 1
        content = loader()
        self._entries[str(key)] = content
        return content

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str | Path) and str(key) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)
