"""Tests for cache backends."""

import json
import os
import stat
from datetime import timedelta

from secretcache.cache import FileCache, MemoryCache


class TestMemoryCache:
    """Test in-memory cache backend."""

    def test_put_and_get(self, memory_cache):
        """Stored values are returned before expiry."""
        memory_cache.put("secret:a", b"value", 60)

        assert memory_cache.get("secret:a") == b"value"

    def test_missing_key(self, memory_cache):
        """Absent keys return None."""
        assert memory_cache.get("secret:missing") is None

    def test_expiry(self, memory_cache, clock):
        """Entries expire once their TTL has elapsed."""
        memory_cache.put("secret:a", b"value", 60)

        clock.advance(seconds=59)
        assert memory_cache.get("secret:a") == b"value"

        clock.advance(seconds=1)
        assert memory_cache.get("secret:a") is None
        assert len(memory_cache) == 0

    def test_delete_absent_key(self, memory_cache):
        """Deleting an absent key is not an error."""
        memory_cache.delete("secret:missing")

    def test_overwrite(self, memory_cache):
        """A later put replaces the value and TTL."""
        memory_cache.put("secret:a", b"one", 10)
        memory_cache.put("secret:a", b"two", 100)

        assert memory_cache.get("secret:a") == b"two"

    def test_default_clock(self):
        """A cache without an injected clock uses wall time."""
        cache = MemoryCache()
        cache.put("k", b"v", 300)

        assert cache.get("k") == b"v"


class TestFileCache:
    """Test file-backed cache backend."""

    def setup_method(self):
        """Setup test environment."""
        self.key = "secret:prod/database"

    def test_put_and_get(self, temp_directory, clock):
        """Values round-trip through the filesystem."""
        cache = FileCache(os.path.join(temp_directory, "cache"), clock=clock)
        cache.put(self.key, b"\x00\x01binary", 60)

        assert cache.get(self.key) == b"\x00\x01binary"

    def test_file_permissions_and_names(self, temp_directory, clock):
        """Entries are owner-only and named without the identifier."""
        directory = os.path.join(temp_directory, "cache")
        cache = FileCache(directory, clock=clock)
        cache.put(self.key, b"value", 60)

        files = os.listdir(directory)
        assert len(files) == 1
        assert "database" not in files[0]
        mode = stat.S_IMODE(os.stat(os.path.join(directory, files[0])).st_mode)
        assert mode == 0o600

    def test_expiry_removes_file(self, temp_directory, clock):
        """Expired entries read as absent and are removed."""
        directory = os.path.join(temp_directory, "cache")
        cache = FileCache(directory, clock=clock)
        cache.put(self.key, b"value", 60)

        clock.advance(seconds=60)

        assert cache.get(self.key) is None
        assert os.listdir(directory) == []

    def test_corrupt_file_is_discarded(self, temp_directory, clock):
        """An unreadable envelope reads as absent."""
        directory = os.path.join(temp_directory, "cache")
        cache = FileCache(directory, clock=clock)
        cache.put(self.key, b"value", 60)
        path = os.path.join(directory, os.listdir(directory)[0])
        with open(path, "w", encoding="utf-8") as f:
            f.write("{not json")

        assert cache.get(self.key) is None
        assert not os.path.exists(path)

    def test_naive_expiry_read_as_utc(self, temp_directory, clock):
        """A hand-edited envelope with a naive expiry is compared as UTC."""
        directory = os.path.join(temp_directory, "cache")
        cache = FileCache(directory, clock=clock)
        cache.put(self.key, b"value", 60)
        path = os.path.join(directory, os.listdir(directory)[0])
        with open(path, encoding="utf-8") as f:
            envelope = json.load(f)

        envelope["expires_at"] = (clock.now() + timedelta(seconds=30)).replace(tzinfo=None).isoformat()
        with open(path, "w", encoding="utf-8") as f:
            json.dump(envelope, f)

        assert cache.get(self.key) == b"value"

        clock.advance(seconds=30)
        assert cache.get(self.key) is None

    def test_non_object_envelope_is_discarded(self, temp_directory, clock):
        """An envelope that is not a JSON object reads as absent."""
        directory = os.path.join(temp_directory, "cache")
        cache = FileCache(directory, clock=clock)
        cache.put(self.key, b"value", 60)
        path = os.path.join(directory, os.listdir(directory)[0])
        with open(path, "w", encoding="utf-8") as f:
            json.dump(["not", "an", "envelope"], f)

        assert cache.get(self.key) is None
        assert not os.path.exists(path)

    def test_delete(self, temp_directory, clock):
        """Delete removes the entry and tolerates repeats."""
        cache = FileCache(os.path.join(temp_directory, "cache"), clock=clock)
        cache.put(self.key, b"value", 60)

        cache.delete(self.key)
        cache.delete(self.key)

        assert cache.get(self.key) is None

    def test_shared_between_instances(self, temp_directory, clock):
        """A second instance over the same directory sees the entries."""
        directory = os.path.join(temp_directory, "cache")
        FileCache(directory, clock=clock).put(self.key, b"value", 60)

        assert FileCache(directory, clock=clock).get(self.key) == b"value"
