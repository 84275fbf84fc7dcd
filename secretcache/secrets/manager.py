"""Rotation-aware, encrypted cache in front of AWS Secrets Manager."""

import json
import logging
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from ..cache.base import CacheBackend
from ..utils.clock import Clock, SystemClock
from ..utils.errors import DecryptError, FetchError, FetchErrorKind, RemoteError
from .cipher import PayloadCipher
from .remote import RemoteSecretStore
from .rotation import RotationMetadata, compute_ttl, should_refresh

logger = logging.getLogger(__name__)

SECRET_KEY_PREFIX = "secret:"
METADATA_KEY_PREFIX = "secret-meta:"

DEFAULT_CACHE_TTL_SECONDS = 300
DEFAULT_ROTATION_BUFFER_DAYS = 7


def secret_cache_key(secret_id: str) -> str:
    return f"{SECRET_KEY_PREFIX}{secret_id}"


def metadata_cache_key(secret_id: str) -> str:
    return f"{METADATA_KEY_PREFIX}{secret_id}"


class SecretCacheManager:
    """Serves secrets from an encrypted cache, refetching around rotations.

    Steady state costs no remote calls: a secret is cached until its rotation
    buffer opens. Inside the buffer the remote store is rechecked at most once
    an hour, and once the rotation date passes every read refetches until the
    remote store reports a new schedule.

    Payloads are encrypted before they reach the cache backend. Rotation
    metadata is stored in plaintext next to the payload under the same TTL.
    """

    def __init__(
        self,
        remote: RemoteSecretStore,
        cache: CacheBackend,
        cipher: PayloadCipher,
        cache_ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS,
        rotation_buffer_days: int = DEFAULT_ROTATION_BUFFER_DAYS,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize secret cache manager.

        Args:
            remote: Remote secret store client
            cache: Cache backend for payloads and metadata
            cipher: Cipher applied to payloads before caching
            cache_ttl_seconds: TTL when no rotation schedule justifies longer caching
            rotation_buffer_days: Days before rotation at which rechecking intensifies
            clock: Time source (wall clock if None)
        """
        self.remote = remote
        self.cache = cache
        self.cipher = cipher
        self.cache_ttl_seconds = cache_ttl_seconds
        self.rotation_buffer_days = rotation_buffer_days
        self.clock = clock or SystemClock()

    def get_secret(self, secret_id: str) -> Dict[str, Any]:
        """
        Get a secret payload, from cache when safe, from the remote store otherwise.

        Args:
            secret_id: Secret name or ARN

        Returns:
            Dict[str, Any]: Secret payload

        Raises:
            FetchError: If the secret cannot be fetched or parsed
        """
        ciphertext, metadata = self._load_cached(secret_id)
        if ciphertext is None or metadata is None:
            return self.fetch_and_cache(secret_id)

        payload = self._decrypt_cached(secret_id, ciphertext)
        if payload is None:
            self.clear_cache(secret_id)
            return self.fetch_and_cache(secret_id)

        if not should_refresh(metadata, self.clock.now(), self.rotation_buffer_days):
            logger.debug(f"Using cached secret: {secret_id}")
            return payload

        logger.info(
            f"Rotation imminent or occurred, checking for updates: {secret_id} "
            f"(next_rotation={_format_optional(metadata.next_rotation)})"
        )
        return self.fetch_and_cache(secret_id)

    def fetch_and_cache(self, secret_id: str) -> Dict[str, Any]:
        """
        Fetch a secret and its rotation metadata, then cache both.

        Args:
            secret_id: Secret name or ARN

        Returns:
            Dict[str, Any]: Freshly fetched payload

        Raises:
            FetchError: On remote failure, missing payload, or invalid JSON.
                Nothing is written to the cache in these cases. A cache
                backend that fails to store the entries (OSError) is logged
                and the fetched payload is still returned.
        """
        logger.info(f"Fetching secret from AWS: {secret_id}")

        try:
            result = self.remote.fetch_secret_value(secret_id)
        except RemoteError as e:
            logger.error(f"Failed to fetch secret {secret_id}: [{e.code}] {e.message}")
            raise FetchError(
                secret_id,
                FetchErrorKind.REMOTE,
                f'Failed to fetch secret "{secret_id}" from AWS Secrets Manager: [{e.code}] {e.message}',
                code=e.code,
                remote_message=e.message,
            ) from e

        if not result.found or result.payload is None:
            logger.error(f"Secret has no SecretString field: {secret_id}")
            raise FetchError(
                secret_id,
                FetchErrorKind.NOT_FOUND,
                f'Secret "{secret_id}" does not contain SecretString field',
            )

        payload = self._parse_payload(secret_id, result.payload)
        metadata = self._describe(secret_id)

        now = self.clock.now()
        ttl = compute_ttl(metadata.next_rotation, now, self.rotation_buffer_days, self.cache_ttl_seconds)

        try:
            self.cache.put(secret_cache_key(secret_id), self.cipher.encrypt(payload), ttl)
            self.cache.put(metadata_cache_key(secret_id), _encode_metadata(metadata), ttl)
        except OSError as e:
            logger.warning(f"Failed to cache secret {secret_id}, returning fetched value uncached: {e}")
            return payload

        logger.info(
            f"Successfully fetched and cached secret {secret_id} "
            f"(cache_ttl={ttl}s, rotation_enabled={metadata.rotation_enabled}, "
            f"next_rotation={_format_optional(metadata.next_rotation)})"
        )
        return payload

    def clear_cache(self, secret_id: str) -> None:
        """Remove the cached payload and metadata of a secret."""
        self.cache.delete(secret_cache_key(secret_id))
        self.cache.delete(metadata_cache_key(secret_id))
        logger.info(f"Cleared cache and metadata: {secret_id}")

    def get_rotation_metadata(self, secret_id: str) -> RotationMetadata:
        """
        Get rotation metadata, from cache if present, otherwise from the remote store.

        The payload cache is never touched and fetched metadata is not cached.

        Raises:
            FetchError: If metadata is not cached and the describe call fails
        """
        cached = self._load_metadata(secret_id)
        if cached is not None:
            return cached

        try:
            return self._describe_remote(secret_id)
        except RemoteError as e:
            raise FetchError(
                secret_id,
                FetchErrorKind.METADATA_UNAVAILABLE,
                f'Failed to describe secret "{secret_id}": [{e.code}] {e.message}',
                code=e.code,
                remote_message=e.message,
            ) from e

    def _load_cached(self, secret_id: str) -> Tuple[Optional[bytes], Optional[RotationMetadata]]:
        return self.cache.get(secret_cache_key(secret_id)), self._load_metadata(secret_id)

    def _load_metadata(self, secret_id: str) -> Optional[RotationMetadata]:
        raw = self.cache.get(metadata_cache_key(secret_id))
        if raw is None:
            return None

        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            logger.warning(f"Cached rotation metadata is unreadable: {secret_id}")
            return None

        if not isinstance(data, dict):
            return None
        return RotationMetadata.from_dict(data)

    def _decrypt_cached(self, secret_id: str, ciphertext: bytes) -> Optional[Dict[str, Any]]:
        try:
            return self.cipher.decrypt(ciphertext)
        except DecryptError as e:
            logger.warning(f"Cached secret {secret_id} could not be decrypted, discarding and refetching: {e}")
            return None

    def _parse_payload(self, secret_id: str, raw: str) -> Dict[str, Any]:
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in secret {secret_id}: {e.msg}")
            raise FetchError(
                secret_id,
                FetchErrorKind.INVALID_JSON,
                f'Secret "{secret_id}" contains invalid JSON: {e.msg}',
            ) from e

        if not isinstance(payload, dict):
            logger.error(f"Secret JSON is not an object: {secret_id}")
            raise FetchError(
                secret_id,
                FetchErrorKind.INVALID_JSON,
                f'Secret "{secret_id}" is not valid JSON or is not an object',
            )
        return payload

    def _describe(self, secret_id: str) -> RotationMetadata:
        try:
            return self._describe_remote(secret_id)
        except RemoteError as e:
            logger.warning(
                f"Failed to fetch rotation metadata for {secret_id}, treating rotation as unknown: "
                f"[{e.code}] {e.message}"
            )
            return RotationMetadata.unknown(self.clock.now())

    def _describe_remote(self, secret_id: str) -> RotationMetadata:
        info = self.remote.describe_secret(secret_id)
        return RotationMetadata(
            last_checked=self.clock.now(),
            rotation_enabled=info.rotation_enabled,
            next_rotation=info.next_rotation,
            last_rotated=info.last_rotated,
        )


def _encode_metadata(metadata: RotationMetadata) -> bytes:
    return json.dumps(metadata.to_dict()).encode("utf-8")


def _format_optional(value: Optional[datetime]) -> str:
    return value.isoformat() if value else "-"
