# core/dates.py

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Any, Optional
from zoneinfo import ZoneInfo

from .config import settings

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
ONE_MS = timedelta(milliseconds=1)
DISPLAY_FORMAT = "%Y-%m-%d %H:%M"

def configured_timezone() -> Optional[tzinfo]:
    if settings.local_timezone:
        return ZoneInfo(settings.local_timezone)
    return None

def localize(naive: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """Attaches the local timezone (configured, else the host's) to a naive datetime."""
    tz = tz or configured_timezone()
    if tz is None:
        return naive.astimezone()
    return naive.replace(tzinfo=tz)

def datetime_to_millis(value: datetime) -> int:
    # Naive datetimes coming out of the store are UTC.
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - EPOCH) // ONE_MS

def coerce_datetime(value: Any, tz: Optional[tzinfo] = None) -> Optional[datetime]:
    """
    Reads the date shapes found in stored visits: datetimes, {"seconds", "nanoseconds"}
    timestamp dicts, epoch-millisecond numbers and ISO strings. Returns None when unreadable.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, dict):
        if "seconds" not in value:
            return None
        try:
            millis = int(value["seconds"]) * 1000 + int(value.get("nanoseconds", 0)) // 1_000_000
            return EPOCH + millis * ONE_MS
        except (TypeError, ValueError, OverflowError):
            return None
    if isinstance(value, (int, float)):
        try:
            return EPOCH + int(value) * ONE_MS
        except (OverflowError, ValueError):
            return None
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
        if parsed.tzinfo:
            return parsed
        try:
            return localize(parsed, tz)
        except (OverflowError, ValueError, OSError):
            return None
    return None

def to_millis(value: Any, tz: Optional[tzinfo] = None) -> int:
    """Epoch milliseconds of a stored date; unreadable dates count as 0."""
    parsed = coerce_datetime(value, tz)
    return datetime_to_millis(parsed) if parsed else 0

def format_date(value: Any, tz: Optional[tzinfo] = None) -> str:
    """Display form of a stored date. Unreadable values are shown as they are."""
    if value is None or value == "":
        return "-"
    parsed = coerce_datetime(value, tz)
    if parsed is None:
        return value if isinstance(value, str) else str(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    tz = tz or configured_timezone()
    try:
        local = parsed.astimezone(tz) if tz else parsed.astimezone()
    except (OverflowError, ValueError, OSError):
        return str(value)
    return local.strftime(DISPLAY_FORMAT)

def _parse_day(day: Optional[str]) -> Optional[date]:
    if not day:
        return None
    try:
        return date.fromisoformat(day.strip())
    except (AttributeError, ValueError):
        print(f"---DATES: Ignoring unreadable date bound {day!r}---")
        return None

def day_start_millis(day: Optional[str], tz: Optional[tzinfo] = None) -> Optional[int]:
    """00:00:00.000 local on `day` (YYYY-MM-DD), or None when absent or unreadable."""
    parsed = _parse_day(day)
    if parsed is None:
        return None
    return datetime_to_millis(localize(datetime.combine(parsed, time.min), tz))

def day_end_millis(day: Optional[str], tz: Optional[tzinfo] = None) -> Optional[int]:
    """23:59:59.999 local on `day` (YYYY-MM-DD), or None when absent or unreadable."""
    parsed = _parse_day(day)
    if parsed is None:
        return None
    return datetime_to_millis(localize(datetime.combine(parsed, time(23, 59, 59, 999000)), tz))
