"""Pytest configuration and shared fixtures."""

import json
import shutil
import tempfile
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from secretcache.cache import MemoryCache
from secretcache.secrets.cipher import PayloadCipher
from secretcache.secrets.manager import SecretCacheManager
from secretcache.secrets.remote import RemoteRotationInfo, RemoteSecretStore, RemoteSecretValue
from secretcache.utils.clock import FixedClock

NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def temp_directory():
    """Create a temporary directory for testing."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture(autouse=True)
def isolate_filesystem(temp_directory, monkeypatch):
    """Isolate filesystem operations and SECRETCACHE_* variables."""
    monkeypatch.chdir(temp_directory)
    for var in (
        "SECRETCACHE_REGION",
        "SECRETCACHE_ENDPOINT_URL",
        "SECRETCACHE_CACHE_TTL",
        "SECRETCACHE_ROTATION_BUFFER_DAYS",
        "SECRETCACHE_DEFAULT_SECRET",
        "SECRETCACHE_ENCRYPTION_KEY",
        "SECRETCACHE_CACHE_BACKEND",
        "SECRETCACHE_CACHE_PATH",
        "AWS_REGION",
        "AWS_DEFAULT_REGION",
    ):
        monkeypatch.delenv(var, raising=False)
    return temp_directory


@pytest.fixture
def clock():
    """Clock pinned to a fixed instant."""
    return FixedClock(NOW)


@pytest.fixture
def memory_cache(clock):
    """In-memory cache backend driven by the fixed clock."""
    return MemoryCache(clock=clock)


@pytest.fixture
def cipher():
    """Payload cipher with a fresh key."""
    return PayloadCipher(PayloadCipher.generate_key())


@pytest.fixture
def sample_payload():
    """Sample database credential payload."""
    return {
        "username": "app_user",
        "password": "s3cr3t-pa55",
        "host": "db.internal",
        "port": 5432,
        "options": {"sslmode": "require", "replicas": ["db-r1", "db-r2"]},
    }


@pytest.fixture
def mock_remote(sample_payload):
    """Remote store returning sample_payload with a rotation 60 days out."""
    remote = MagicMock(spec=RemoteSecretStore)
    remote.fetch_secret_value.return_value = RemoteSecretValue(
        payload=json.dumps(sample_payload), found=True
    )
    remote.describe_secret.return_value = RemoteRotationInfo(
        rotation_enabled=True,
        next_rotation=NOW + timedelta(days=60),
        last_rotated=NOW - timedelta(days=30),
    )
    return remote


@pytest.fixture
def secret_cache(mock_remote, memory_cache, cipher, clock):
    """SecretCacheManager wired with fakes and a 7-day buffer."""
    return SecretCacheManager(
        remote=mock_remote,
        cache=memory_cache,
        cipher=cipher,
        cache_ttl_seconds=300,
        rotation_buffer_days=7,
        clock=clock,
    )
