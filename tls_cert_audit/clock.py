"""
Current time and display timezone for TLS Certificate Audit.
"""

import logging
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

DEFAULT_TIMEZONE = "Asia/Tokyo"
DEFAULT_FALLBACK_OFFSET_HOURS = 9


def resolve_timezone(
    name: str = DEFAULT_TIMEZONE,
    fallback_offset_hours: int = DEFAULT_FALLBACK_OFFSET_HOURS,
    logger: Optional[logging.Logger] = None,
) -> tzinfo:
    """
    Resolve the display timezone.

    Args:
        name: IANA timezone name
        fallback_offset_hours: Fixed UTC offset used when the timezone
            database has no entry for ``name``

    Returns:
        Timezone used for every human-facing timestamp
    """
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        fallback = timezone(timedelta(hours=fallback_offset_hours))
        if logger is not None:
            logger.warning(f"Timezone {name!r} unavailable ({e}), using {fallback}")
        return fallback


class Clock:
    """Supplies the current instant and converts instants to the display timezone."""

    def __init__(self, display_tz: tzinfo) -> None:
        self.display_tz = display_tz

    def now(self) -> datetime:
        """Current instant in UTC."""
        return datetime.now(timezone.utc)

    def display_now(self) -> datetime:
        """Current instant in the display timezone."""
        return self.now().astimezone(self.display_tz)

    def to_display(self, moment: datetime) -> datetime:
        return moment.astimezone(self.display_tz)
