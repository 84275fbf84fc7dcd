"""Builds a SecretCacheManager from settings."""

import logging
from typing import Optional

from ..cache import CacheBackend, FileCache, MemoryCache
from ..config.manager import CacheSettings
from ..utils.clock import Clock, SystemClock
from ..utils.errors import ConfigurationError
from .cipher import PayloadCipher
from .manager import SecretCacheManager
from .remote import RemoteSecretStore

logger = logging.getLogger(__name__)


def create_cache_backend(settings: CacheSettings, clock: Optional[Clock] = None) -> CacheBackend:
    """
    Create the cache backend named in settings.

    Raises:
        ConfigurationError: If the backend name is unknown
    """
    backend = settings.cache_backend.strip().lower()
    if backend == "memory":
        return MemoryCache(clock=clock)
    if backend == "file":
        return FileCache(settings.cache_path, clock=clock)

    raise ConfigurationError(
        f"Unknown cache backend: {settings.cache_backend}",
        suggestions=["Use 'memory' or 'file' for cache.backend"],
    )


def create_secret_cache(
    settings: CacheSettings,
    remote: Optional[RemoteSecretStore] = None,
    cache: Optional[CacheBackend] = None,
    clock: Optional[Clock] = None,
) -> SecretCacheManager:
    """
    Create a SecretCacheManager wired from settings.

    Any collaborator passed explicitly is used as-is. Without a configured
    encryption key an ephemeral one is generated, so entries written by
    other processes or earlier runs self-heal on first read.

    Args:
        settings: Effective settings
        remote: Remote store client (boto3-backed if None)
        cache: Cache backend (from settings if None)
        clock: Time source shared by the backend and the manager

    Returns:
        SecretCacheManager: Ready-to-use cache
    """
    clock = clock or SystemClock()

    if settings.encryption_key:
        cipher = PayloadCipher(settings.encryption_key)
    else:
        logger.warning("No cache encryption key configured, using an ephemeral key for this process")
        cipher = PayloadCipher(PayloadCipher.generate_key())

    if remote is None:
        remote = RemoteSecretStore(region_name=settings.region, endpoint_url=settings.endpoint_url)

    if cache is None:
        cache = create_cache_backend(settings, clock=clock)

    return SecretCacheManager(
        remote=remote,
        cache=cache,
        cipher=cipher,
        cache_ttl_seconds=settings.cache_ttl_seconds,
        rotation_buffer_days=settings.rotation_buffer_days,
        clock=clock,
    )
