"""In-memory memoization with a fixed capacity."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Generic, Hashable, Optional, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass
class BoundedCache(Generic[K, V]):
    """Insertion-ordered cache that drops its oldest half when full."""

    capacity: int
    _entries: Dict[K, V] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.capacity < 1:
            raise ValueError("capacity must be positive")

    def get(self, key: K) -> Optional[V]:
        return self._entries.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def put(self, key: K, value: V) -> None:
        if key not in self._entries and len(self._entries) >= self.capacity:
            self._evict()
        self._entries[key] = value

    def clear(self) -> None:
        self._entries.clear()

    def _evict(self) -> None:
        drop = max(1, len(self._entries) // 2)
        for key in list(self._entries)[:drop]:
            del self._entries[key]


__all__ = ["BoundedCache"]
