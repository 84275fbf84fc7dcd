"""Rotation metadata and rotation-aware TTL planning."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Union

from ..utils.clock import ensure_utc

logger = logging.getLogger(__name__)

MAX_CACHE_TTL_SECONDS = int(timedelta(days=30).total_seconds())
RECHECK_INTERVAL = timedelta(hours=1)

Timestamp = Union[datetime, str, None]


def parse_timestamp(value: Timestamp) -> Optional[datetime]:
    """
    Parse a timestamp from a datetime or ISO-8601 string.

    Raises:
        ValueError: If the value cannot be interpreted as a timestamp
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, str):
        return ensure_utc(datetime.fromisoformat(value))
    raise ValueError(f"Unsupported timestamp type: {type(value).__name__}")


def _format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class RotationMetadata:
    """Rotation schedule of a secret as last reported by the remote store."""

    last_checked: datetime
    rotation_enabled: bool = False
    next_rotation: Optional[datetime] = None
    last_rotated: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rotation_enabled": self.rotation_enabled,
            "next_rotation": _format_timestamp(self.next_rotation),
            "last_rotated": _format_timestamp(self.last_rotated),
            "last_checked": _format_timestamp(self.last_checked),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RotationMetadata":
        """
        Build metadata from its cached form.

        Unparseable timestamps are dropped rather than raised so that a damaged
        entry degrades to "rotation unknown". A missing last_checked becomes
        the epoch, which reads as "never checked".
        """
        last_checked = _lenient_timestamp(data.get("last_checked"))
        return cls(
            rotation_enabled=bool(data.get("rotation_enabled", False)),
            next_rotation=_lenient_timestamp(data.get("next_rotation")),
            last_rotated=_lenient_timestamp(data.get("last_rotated")),
            last_checked=last_checked or datetime.fromtimestamp(0, timezone.utc),
        )

    @classmethod
    def unknown(cls, now: datetime) -> "RotationMetadata":
        """Metadata used when the remote store could not describe the secret."""
        return cls(last_checked=now, rotation_enabled=False)


def _lenient_timestamp(value: Any) -> Optional[datetime]:
    try:
        return parse_timestamp(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring unparseable rotation timestamp in cached metadata")
        return None


def compute_ttl(
    next_rotation: Timestamp,
    now: datetime,
    buffer_days: int,
    default_ttl: int,
) -> int:
    """
    Compute how long a freshly fetched secret may stay cached.

    Secrets are cached until the rotation buffer opens, capped at 30 days.
    Inside the buffer, past the rotation date, or with no known schedule the
    short default TTL applies so the remote store is rechecked often.

    Args:
        next_rotation: Next scheduled rotation (datetime or ISO-8601 string)
        now: Current time
        buffer_days: Days before rotation at which rechecking intensifies
        default_ttl: TTL in seconds when no longer caching is justified

    Returns:
        int: TTL in seconds (at least 1)
    """
    try:
        rotation_at = parse_timestamp(next_rotation)
        if rotation_at is None:
            return default_ttl

        buffer_start = rotation_at - timedelta(days=buffer_days)
        current = ensure_utc(now)
        if current >= buffer_start:
            return default_ttl

        seconds_until_buffer = int((buffer_start - current).total_seconds())
        return max(1, min(seconds_until_buffer, MAX_CACHE_TTL_SECONDS))
    except (TypeError, ValueError, OverflowError) as e:
        logger.warning(f"Falling back to default cache TTL of {default_ttl}s: {e}")
        return default_ttl


def should_refresh(metadata: RotationMetadata, now: datetime, buffer_days: int) -> bool:
    """
    Decide whether a cached secret must be refetched.

    Refresh is required once the rotation date has passed, or inside the
    buffer window when the last check is an hour old or more. Boundaries are
    inclusive on the refresh side.
    """
    if metadata.next_rotation is None:
        return False

    current = ensure_utc(now)
    buffer_start = metadata.next_rotation - timedelta(days=buffer_days)
    if current < buffer_start:
        return False

    if current < metadata.next_rotation and current - metadata.last_checked < RECHECK_INTERVAL:
        return False

    return True
