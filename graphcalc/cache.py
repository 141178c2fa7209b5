"""Time-bounded memo of compiled curves keyed by raw expression text."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .classifier import CompiledCurve
from .config import CACHE_TTL_SECONDS

__all__ = ["CacheEntry", "CompilationCache"]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


@dataclass(frozen=True)
class CacheEntry:
    """One cached compilation result and the clock reading it was stored at."""

    curve: CompiledCurve
    timestamp: float

    @property
    def kind(self) -> str:
        return self.curve.kind


class CompilationCache:
    """Compilation cache with lazy time-to-live eviction.

    Parameters
    ----------
    ttl : float
        Seconds an entry stays valid after :meth:`put`.
    clock : callable
        Zero-argument function returning the current time in seconds.
        Tests pass a fake clock.

    Notes
    -----
    Keys are the exact text the user typed, whitespace included. Expired
    entries are removed by the lookup that finds them; there is no
    background sweep. A lock serializes access so the cache may be shared
    across threads.

    Examples
    --------
    >>> cache = CompilationCache(ttl=300)  # doctest: +SKIP
    >>> cache.put("x^2", curve)  # doctest: +SKIP
    >>> cache.get("x^2").curve is curve  # doctest: +SKIP
    True
    """

    def __init__(self, ttl: float = CACHE_TTL_SECONDS, clock: Callable[[], float] = time.monotonic) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be > 0")
        self.ttl = float(ttl)
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, text: str) -> Optional[CacheEntry]:
        """Return the live entry for ``text`` or ``None`` on a miss."""
        with self._lock:
            entry = self._entries.get(text)
            if entry is None:
                logger.debug("cache miss: %r", text)
                return None
            if self._clock() - entry.timestamp > self.ttl:
                del self._entries[text]
                logger.debug("cache expired: %r", text)
                return None
            logger.debug("cache hit: %r", text)
            return entry

    def put(self, text: str, curve: CompiledCurve) -> CacheEntry:
        """Store ``curve`` under ``text``, replacing any entry and its timestamp."""
        entry = CacheEntry(curve=curve, timestamp=self._clock())
        with self._lock:
            self._entries[text] = entry
        return entry

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, text: object) -> bool:
        with self._lock:
            return text in self._entries
