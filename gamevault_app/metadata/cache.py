"""
Cache layer for enriched game details.

Design:
  - In-memory dict cache (simple, no external dependencies)
  - TTL-based expiration (1 hour by default)
  - Thread-safe with locks
  - LRU eviction when cache size exceeds limit

Usage:
    cache = DetailCache(ttl=3600, max_size=2000)

    cache.set(detail, kind)           # keyed by detail.id
    cached = cache.get(1245620)       # GameDetail or None
    detail, kind = cache.lookup(1245620)

    stats = cache.stats()
"""

import time
import threading
from typing import Any, Callable, Dict, Optional, Tuple
from collections import OrderedDict

from .models import GameDetail, RecordKind


class DetailCache:
    """Thread-safe in-memory cache of GameDetail records keyed by app id."""

    def __init__(self, ttl: float = 3600, max_size: int = 2000, clock: Callable[[], float] = time.time):
        """
        Initialize cache.

        Args:
            ttl: Time-to-live in seconds (default: 1 hour)
            max_size: Maximum cache entries (default: 2000)
        """
        self.ttl = ttl
        self.max_size = max_size
        self._clock = clock
        self._cache: OrderedDict = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, app_id: int) -> Optional[GameDetail]:
        """Get a cached detail if present and not expired."""
        hit = self.lookup(app_id)
        return hit[0] if hit else None

    def lookup(self, app_id: int) -> Optional[Tuple[GameDetail, RecordKind]]:
        """Get (detail, kind) for a live entry, refreshing its LRU position."""
        with self._lock:
            entry = self._cache.get(app_id)
            if entry is None:
                self._misses += 1
                return None

            if self._clock() - entry['timestamp'] > self.ttl:
                del self._cache[app_id]
                self._misses += 1
                return None

            self._cache.move_to_end(app_id)
            self._hits += 1
            return entry['data'], entry['kind']

    def set(self, detail: GameDetail, kind: RecordKind = RecordKind.GAME) -> None:
        """Store a detail with the kind it was classified as upstream."""
        with self._lock:
            if len(self._cache) >= self.max_size and detail.id not in self._cache:
                self._cache.popitem(last=False)

            self._cache[detail.id] = {
                'data': detail,
                'kind': kind,
                'timestamp': self._clock()
            }
            self._cache.move_to_end(detail.id)

    def __len__(self) -> int:
        return len(self._cache)

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0.0

            return {
                'size': len(self._cache),
                'max_size': self.max_size,
                'ttl': self.ttl,
                'hits': self._hits,
                'misses': self._misses,
                'hit_rate': round(hit_rate, 2)
            }

    def evict_expired(self) -> int:
        """
        Manually evict all expired entries.

        Returns:
            Number of entries evicted
        """
        now = self._clock()

        with self._lock:
            expired_keys = [
                key for key, entry in self._cache.items()
                if now - entry['timestamp'] > self.ttl
            ]
            for key in expired_keys:
                del self._cache[key]

        return len(expired_keys)
