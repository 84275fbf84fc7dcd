"""Rotation-aware secret caching for AWS Secrets Manager."""

from .cipher import PayloadCipher
from .factory import create_secret_cache
from .manager import SecretCacheManager
from .remote import RemoteSecretStore
from .rotation import RotationMetadata, compute_ttl, should_refresh

__all__ = [
    "PayloadCipher",
    "RemoteSecretStore",
    "RotationMetadata",
    "SecretCacheManager",
    "compute_ttl",
    "create_secret_cache",
    "should_refresh",
]
