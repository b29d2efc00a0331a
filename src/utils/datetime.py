# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities.

All timestamps are stored in UTC (PostgreSQL TIMESTAMPTZ) and every Python
datetime handled by the application is timezone-aware.

Usage:
    from src.utils.datetime import utc_now

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
"""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.
    """
    return datetime.now(timezone.utc)


def utc_from_timestamp(timestamp: float) -> datetime:
    """Create a timezone-aware UTC datetime from a Unix timestamp.

    Args:
        timestamp: Unix timestamp (seconds since epoch).

    Returns:
        Timezone-aware UTC datetime.
    """
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Normalize a datetime to UTC, treating naive values as UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def minutes_from_now(minutes: int) -> datetime:
    """Get the UTC datetime `minutes` minutes in the future."""
    return utc_now() + timedelta(minutes=minutes)


def days_from_now(days: int) -> datetime:
    """Get the UTC datetime `days` days in the future."""
    return utc_now() + timedelta(days=days)


def is_expired(expiry: datetime | None) -> bool:
    """Check whether an expiry timestamp lies in the past.

    Args:
        expiry: Expiry time. None means the value never expires.

    Returns:
        True if expiry is set and not in the future.
    """
    if expiry is None:
        return False
    return ensure_utc(expiry) <= utc_now()


def format_iso(dt: datetime | None) -> str | None:
    """Format a datetime as an ISO 8601 string in UTC."""
    if dt is None:
        return None
    return ensure_utc(dt).isoformat()


def format_duration(seconds: int | None) -> str:
    """Format a video duration as ``MM:SS`` or ``H:MM:SS``.

    Args:
        seconds: Duration in seconds.

    Returns:
        Human-readable duration string.

    Example:
        >>> format_duration(754)
        '12:34'
        >>> format_duration(3725)
        '1:02:05'
    """
    seconds = max(int(seconds or 0), 0)
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"
