"""UTC datetime utilities."""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """Treat naive datetimes from the driver as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def window_end(start: datetime, duration_minutes: int) -> datetime:
    """End of a collection window that opens at `start`."""
    return as_utc(start) + timedelta(minutes=duration_minutes)


def iso_or_none(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt is not None else None
