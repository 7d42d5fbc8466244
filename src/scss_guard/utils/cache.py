"""Caching utilities for scss-guard."""

import time
import threading
from typing import Optional, Tuple, Generic, TypeVar
from collections import OrderedDict
from hashlib import sha256

K = TypeVar("K")
V = TypeVar("V")


class LRUCache(Generic[K, V]):
    """Thread-safe LRU (Least Recently Used) cache implementation."""

    def __init__(self, max_size: int = 128, ttl: Optional[float] = None):
        """
        Initialize LRU cache.

        Args:
            max_size: Maximum number of items to store
            ttl: Time-to-live in seconds (None for no expiration)
        """
        self.max_size = max_size
        self.ttl = ttl
        self._cache: OrderedDict[K, Tuple[V, float]] = OrderedDict()
        self._lock = threading.RLock()
        self.hits = 0
        self.misses = 0

    def get(self, key: K, default: Optional[V] = None) -> Optional[V]:
        """Get value from cache."""
        with self._lock:
            if key not in self._cache:
                self.misses += 1
                return default

            value, timestamp = self._cache[key]

            # Check if expired
            if self.ttl and time.time() - timestamp > self.ttl:
                del self._cache[key]
                self.misses += 1
                return default

            # Move to end (most recently used)
            self._cache.move_to_end(key)
            self.hits += 1
            return value

    def put(self, key: K, value: V) -> None:
        """Put value in cache."""
        with self._lock:
            current_time = time.time()

            if key in self._cache:
                # Update existing key
                self._cache[key] = (value, current_time)
                self._cache.move_to_end(key)
            else:
                # Add new key
                self._cache[key] = (value, current_time)

                # Remove oldest if over capacity
                if len(self._cache) > self.max_size:
                    self._cache.popitem(last=False)

    def size(self) -> int:
        """Get current cache size."""
        with self._lock:
            return len(self._cache)

    def cleanup_expired(self) -> int:
        """Remove expired items and return count of removed items."""
        if not self.ttl:
            return 0

        with self._lock:
            current_time = time.time()
            expired_keys = []

            for key, (_, timestamp) in self._cache.items():
                if current_time - timestamp > self.ttl:
                    expired_keys.append(key)

            for key in expired_keys:
                del self._cache[key]

            return len(expired_keys)


def content_key(path: str, content: str) -> str:
    """Build a parse-cache key from a file path and the hash of its content.

    Editing a file changes its hash, so stale trees are never returned; the
    old entry simply ages out of the LRU.
    """
    digest = sha256(content.encode("utf-8")).hexdigest()
    return f"{path}:{digest}"

