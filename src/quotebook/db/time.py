"""Time utilities for database models."""

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def to_unix(moment: datetime) -> int:
    """Return ``moment`` as whole unix seconds."""
    return int(moment.timestamp())


def from_unix(seconds: int) -> datetime:
    """Return a UTC datetime for stored unix seconds."""
    return datetime.fromtimestamp(seconds, UTC)
