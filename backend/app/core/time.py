"""Time utilities for timezone-aware UTC datetimes and stored text forms."""

from datetime import UTC, date, datetime


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime for defaults and onupdate hooks."""
    return datetime.now(UTC)


def epoch_millis(moment: datetime | None = None) -> int:
    moment = moment or utc_now()
    return int(moment.timestamp() * 1000)


def to_iso_text(value: date | datetime) -> str:
    """Normalize a date or datetime to the ISO-8601 text stored in documents.

    Plain dates are stored as UTC midnight so every stored timestamp has the
    same shape, e.g. ``2015-03-01T00:00:00.000Z``.
    """
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day, tzinfo=UTC)
    elif value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    value = value.astimezone(UTC)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"
