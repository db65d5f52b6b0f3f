"""Timestamp formats shared by status files and log headers."""

from datetime import datetime


def _clock(now: datetime) -> str:
    hour = now.hour % 12 or 12
    suffix = "PM" if now.hour >= 12 else "AM"
    return f"{hour}:{now.minute:02d}{suffix}"


def status_timestamp(now: datetime | None = None) -> str:
    """Jamf-safe timestamp, e.g. ``03-07-2025 9:05PM``.

    Month and day are zero-padded, the 12-hour clock is not; noon and
    midnight both render as 12.
    """
    now = now or datetime.now()
    return f"{now:%m-%d-%Y} {_clock(now)}"


def section_timestamp(now: datetime | None = None) -> str:
    """Log header timestamp, e.g. ``September 19 2025 9:05PM``."""
    now = now or datetime.now()
    return f"{now:%B %d %Y} {_clock(now)}"
