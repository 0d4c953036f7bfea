"""Time-bounded cache of session lookups keyed by uid or tool-use id."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, Tuple

__all__ = ["CacheStats", "SessionCache", "SessionInfo"]

DEFAULT_TTL_SECONDS = 15 * 60


@dataclass(slots=True, frozen=True)
class SessionInfo:
    """Location of one session log under the projects root."""

    session_file: str
    project_hash: str
    session_id: str


@dataclass(slots=True, frozen=True)
class CacheStats:
    hits: int
    misses: int
    hit_rate: float


class SessionCache:
    """Map lookup keys to `SessionInfo` entries that expire after ``ttl_seconds``.

    ``clock`` returns seconds and is injectable so expiry can be tested
    without sleeping.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = float(ttl_seconds)
        self._clock = clock
        self._entries: Dict[str, Tuple[SessionInfo, float]] = {}
        self._hits = 0
        self._misses = 0

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def __len__(self) -> int:
        return len(self._entries)

    def _live(self, key: str) -> SessionInfo | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        info, stored_at = entry
        if self._clock() - stored_at > self._ttl:
            del self._entries[key]
            return None
        return info

    def set(self, key: str, info: SessionInfo) -> None:
        self._entries[key] = (info, self._clock())

    def get(self, key: str) -> SessionInfo | None:
        """Return the cached entry, counting a hit or a miss."""
        info = self._live(key)
        if info is None:
            self._misses += 1
        else:
            self._hits += 1
        return info

    def has(self, key: str) -> bool:
        """Return whether a live entry exists without touching the statistics."""
        return self._live(key) is not None

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> CacheStats:
        total = self._hits + self._misses
        hit_rate = self._hits / total if total else 0.0
        return CacheStats(hits=self._hits, misses=self._misses, hit_rate=hit_rate)
