"""File-backed cache backend."""

import base64
import hashlib
import json
import logging
import os
import tempfile
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

from ..utils.clock import Clock, SystemClock, ensure_utc
from .base import CacheBackend

logger = logging.getLogger(__name__)


class FileCache(CacheBackend):
    """Stores each entry as an owner-only JSON envelope in a directory.

    File names are SHA-256 digests of the cache key, so secret identifiers
    never appear on the filesystem.
    """

    def __init__(self, directory: str, clock: Optional[Clock] = None):
        """
        Initialize file cache.

        Args:
            directory: Directory holding cache entries (created if missing)
            clock: Clock used for expiry checks
        """
        self.directory = Path(directory).expanduser()
        self.clock = clock or SystemClock()
        self.directory.mkdir(parents=True, exist_ok=True)
        os.chmod(self.directory, 0o700)

    def _path_for(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.directory / f"{digest}.json"

    def get(self, key: str) -> Optional[bytes]:
        path = self._path_for(key)
        if not path.exists():
            return None

        try:
            with open(path, encoding="utf-8") as f:
                envelope = json.load(f)
            expires_at = ensure_utc(datetime.fromisoformat(envelope["expires_at"]))
            value = base64.b64decode(envelope["value"])
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Discarding unreadable cache file {path}: {e}")
            self._remove(path)
            return None

        if envelope.get("key") != key:
            return None

        if self.clock.now() >= expires_at:
            self._remove(path)
            return None

        return value

    def put(self, key: str, value: bytes, ttl_seconds: int) -> None:
        envelope = {
            "key": key,
            "expires_at": (self.clock.now() + timedelta(seconds=ttl_seconds)).isoformat(),
            "value": base64.b64encode(value).decode("ascii"),
        }

        # Write to a temp file and rename so readers never see a partial entry
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(envelope, f)
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, self._path_for(key))
        except BaseException:
            self._remove(Path(tmp_path))
            raise

    def delete(self, key: str) -> None:
        self._remove(self._path_for(key))

    def _remove(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
