"""Time utilities."""
from datetime import UTC, datetime, timedelta, timezone


def utcnow() -> datetime:
    """Return current UTC time with timezone awareness."""

    return datetime.now(tz=UTC)


def parse_iso_utc(value: str) -> datetime:
    """Parse an ISO 8601 date or datetime and normalize it to UTC.

    Naive values are taken as UTC; a bare date means midnight UTC.
    Raises ``ValueError`` when the string is not ISO 8601.
    """

    dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def days_before(days: int, now: datetime | None = None) -> datetime:
    """Return the UTC instant ``days`` days before ``now``."""

    reference = now or utcnow()
    if reference.tzinfo is None:
        reference = reference.replace(tzinfo=timezone.utc)
    return reference.astimezone(timezone.utc) - timedelta(days=days)


__all__ = ["utcnow", "parse_iso_utc", "days_before"]
