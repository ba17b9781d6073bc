"""Utility helpers shared by the search core and the API"""

import time
from typing import Callable, Dict, Generic, Optional, Tuple, TypeVar

V = TypeVar("V")


class BoundedCache(Generic[V]):
    """
    Size-bounded key -> value cache with optional per-entry expiry.

    When a set() pushes the cache over max_size, expired entries are swept
    first; if it is still too large the oldest entries (insertion order) are
    evicted.

    Examples:
        >>> cache = BoundedCache(max_size=2)
        >>> cache.set("a", 1); cache.set("b", 2); cache.set("c", 3)
        >>> cache.get("a") is None
        True
    """

    def __init__(self, max_size: int = 10000, clock: Callable[[], float] = time.monotonic):
        self.max_size = max_size
        self._clock = clock
        self._entries: Dict[str, Tuple[V, Optional[float]]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def get(self, key: str) -> Optional[V]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and expires_at <= self._clock():
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: V, ttl: Optional[float] = None) -> None:
        expires_at = self._clock() + ttl if ttl is not None else None
        self._entries.pop(key, None)
        self._entries[key] = (value, expires_at)
        if len(self._entries) > self.max_size:
            self.sweep()

    def sweep(self) -> int:
        """Drop expired entries, then the oldest until within max_size"""
        now = self._clock()
        expired = [k for k, (_, exp) in self._entries.items() if exp is not None and exp <= now]
        for key in expired:
            del self._entries[key]

        removed = len(expired)
        while len(self._entries) > self.max_size:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
            removed += 1
        return removed

    def clear(self) -> None:
        self._entries.clear()

    def items(self):
        """Live (non-expired) entries"""
        now = self._clock()
        return [
            (k, v) for k, (v, exp) in self._entries.items()
            if exp is None or exp > now
        ]
