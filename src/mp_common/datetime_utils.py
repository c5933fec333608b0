"""UTC datetime utilities."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def to_date_str(value: datetime | None) -> str:
    """Export-friendly date: 2026-10-19. Empty string for missing timestamps."""
    if value is None:
        return ""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%d")
