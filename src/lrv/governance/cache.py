from __future__ import annotations

from typing import Dict, Generic, Hashable, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

_MISSING = object()


class BatchCache(Generic[K, V]):
    """Key -> value memo that lives exactly as long as one batch.

    Absent results (``None``) are cached too, so a local id that is not in
    the directory is only queried once per batch.
    """

    def __init__(self, name: str):
        self.name = name
        self._entries: Dict[K, V] = {}
        self.hits = 0
        self.misses = 0

    def lookup(self, key: K):
        value = self._entries.get(key, _MISSING)
        if value is _MISSING:
            self.misses += 1
        else:
            self.hits += 1
        return value

    def store(self, key: K, value: V) -> V:
        self._entries[key] = value
        return value


def is_missing(value: object) -> bool:
    return value is _MISSING
