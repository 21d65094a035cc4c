"""
Data Store for Screener
=======================

Handles:
- Short-lived caching of screener results keyed by (symbols, filters, thresholds)
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

logger = logging.getLogger(__name__)

CacheKey = Tuple[Tuple[str, ...], Tuple[str, ...], Tuple[Any, ...]]


def make_key(symbols: Iterable[str], filters: Iterable[Any], options: Any = None) -> CacheKey:
    """
    Cache key for the exact symbol list, filter list and thresholds.

    `options` is a ScreenerOptions; its two-plus, clamped min-confidence
    and weekly flags are part of the key.
    """
    filter_ids = tuple(getattr(f, "value", f) for f in filters)
    thresholds = ()
    if options is not None:
        thresholds = (
            options.require_two_plus,
            options.min_confidence,
            options.require_weekly_agree,
        )
    return tuple(symbols), filter_ids, thresholds


class ResultCache:
    """
    In-memory TTL cache for screener results.

    Features:
    - Entries expire `ttl_seconds` after they were stored
    - Expired entries are evicted on read
    - Safe to share between request threads
    """

    def __init__(self, ttl_seconds: float = 60, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Any, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key) -> Optional[Any]:
        """Return the cached value, or None when missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            stored_at, value = entry
            if self._clock() - stored_at >= self.ttl_seconds:
                del self._entries[key]
                logger.debug(f"Cache expired: {key}")
                return None

            return value

    def set(self, key, value):
        """Store a value under key."""
        with self._lock:
            self._entries[key] = (self._clock(), value)

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
