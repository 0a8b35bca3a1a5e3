"""
Small key/value memo with optional expiry and explicit invalidation.

Used for the table-existence checks of the schema inspector. Entries are
read and written from the event loop only, so no locking is needed.
"""

from __future__ import annotations

import time
from typing import Callable, Dict, Generic, Hashable, Optional, Tuple, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class MemoCache(Generic[K, V]):
    """
    Key/value store whose entries expire after `ttl_seconds` (never when None).

    Parameters
    ----------
    ttl_seconds : float | None
        Lifetime of an entry. `None` keeps entries until invalidated.
    clock : callable
        Monotonic time source; injectable for tests.
    """

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive or None")
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: Dict[K, Tuple[V, Optional[float]]] = {}

    def get(self, key: K) -> Optional[V]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: K, value: V) -> None:
        expires_at = None if self._ttl is None else self._clock() + self._ttl
        self._entries[key] = (value, expires_at)

    def invalidate(self, key: Optional[K] = None) -> None:
        """Drop one entry, or every entry when `key` is None."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return self.get(key) is not None  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["MemoCache"]
