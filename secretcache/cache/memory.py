"""In-process cache backend."""

import threading
from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple

from ..utils.clock import Clock, SystemClock
from .base import CacheBackend


class MemoryCache(CacheBackend):
    """Thread-safe dictionary cache with lazy expiry."""

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or SystemClock()
        self._entries: Dict[str, Tuple[bytes, datetime]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            value, expires_at = entry
            if self.clock.now() >= expires_at:
                del self._entries[key]
                return None
            return value

    def put(self, key: str, value: bytes, ttl_seconds: int) -> None:
        expires_at = self.clock.now() + timedelta(seconds=ttl_seconds)
        with self._lock:
            self._entries[key] = (value, expires_at)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
