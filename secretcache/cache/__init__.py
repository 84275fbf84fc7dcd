"""Key-value cache backends for SecretCache."""

from .base import CacheBackend
from .file import FileCache
from .memory import MemoryCache

__all__ = ["CacheBackend", "FileCache", "MemoryCache"]
