"""Cache backend interface."""

from abc import ABC, abstractmethod
from typing import Optional


class CacheBackend(ABC):
    """Byte-oriented key-value store with per-entry TTL."""

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """Return the stored value, or None if absent or expired."""

    @abstractmethod
    def put(self, key: str, value: bytes, ttl_seconds: int) -> None:
        """Store a value for ttl_seconds."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a key. Removing an absent key is not an error."""
