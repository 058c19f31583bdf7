"""Process-wide registry of API root instances and their sessions."""

import threading
from collections.abc import Callable
from typing import Generic, TypeVar

V = TypeVar("V")


class APIRegistry(Generic[V]):
    """Maps a backend identity to the value created for it on first access.

    Entries are created at most once per key, even when several threads ask
    for the same key concurrently, and are never removed. The lock is only
    held while the factory runs, which must not perform network I/O.
    """

    def __init__(self) -> None:
        self._entries: dict[str, V] = {}
        self._lock = threading.Lock()

    def get_or_create(self, key: str, factory: Callable[[], V]) -> V:
        """Return the entry for ``key``, creating it with ``factory`` if absent."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = factory()
                self._entries[key] = entry
            return entry

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# Shared by every API subclass in the process.
instance_pairs: APIRegistry = APIRegistry()
