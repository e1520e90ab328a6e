"""Time-bounded quote cache keyed by (provider, symbol)."""

import time
from dataclasses import dataclass
from typing import Any, Callable, Hashable, Optional

DEFAULT_TTL_SECONDS = 60


@dataclass
class CacheEntry:
    """A cached value and the monotonic time it was written."""

    value: Any
    timestamp: float


class QuoteCache:
    """
    In-memory TTL cache for provider results.

    Entries are valid while `now - timestamp < ttl`. Stale entries are ignored
    on read and left in place until overwritten. Keys are independent: a write
    replaces one dict slot, so concurrent tasks on the event loop never see a
    partial entry and same-key writes are last-writer-wins.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, CacheEntry] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, key: Hashable) -> Optional[Any]:
        """Return the cached value if present and within TTL, else None."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.timestamp >= self._ttl:
            return None
        return entry.value

    def set(self, key: Hashable, value: Any) -> None:
        """Store `value` under `key` stamped with the current time."""
        self._entries[key] = CacheEntry(value=value, timestamp=self._clock())

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()
