# backend/services/time_utils.py
import logging
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)


def now_utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_iso_datetime(value: str) -> datetime:
    """
    Parse the upstream's combined start timestamp.
    Accepts a trailing 'Z', which datetime.fromisoformat only handles on 3.11+.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError("empty timestamp")
    s = value.strip()
    if s.endswith("Z") or s.endswith("z"):
        s = s[:-1] + "+00:00"
    return datetime.fromisoformat(s)


def to_display_zone(dt: datetime, tz_name: Optional[str]) -> datetime:
    """Convert to tz_name if given; otherwise keep the timestamp's own offset."""
    if not tz_name or dt.tzinfo is None:
        return dt
    try:
        return dt.astimezone(ZoneInfo(tz_name))
    except ZoneInfoNotFoundError:
        logger.warning("Unknown display timezone %s, keeping upstream offset", tz_name)
        return dt


def format_long_date(dt: datetime) -> str:
    # "March 10, 2025"
    return f"{dt.strftime('%B')} {dt.day}, {dt.year}"


def format_clock_time(dt: datetime) -> str:
    # "10:00 AM"
    return dt.strftime("%I:%M %p")


def format_hour(hour: int) -> str:
    """
    Whole hour on a 24h clock -> "9:00 AM" style label.
    Hours above 12 drop by 12; 12 stays 12 (PM); 0 and 24 are midnight.
    """
    if hour in (0, 24):
        return "12:00 AM"
    suffix = "PM" if hour >= 12 else "AM"
    display = hour - 12 if hour > 12 else hour
    return f"{display}:00 {suffix}"
