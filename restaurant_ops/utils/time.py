"""Calendar helpers for the weekly entry workflow."""

from datetime import date, datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from restaurant_ops.config import settings

WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

DAYS_PER_WEEK = 7


def today_local(tz_name: Optional[str] = None) -> date:
    """Current calendar date in the restaurant's timezone."""
    return datetime.now(ZoneInfo(tz_name or settings.TIMEZONE)).date()


def day_name(day: date) -> str:
    return WEEKDAY_NAMES[day.weekday()]


def week_end(start: date) -> date:
    return start + timedelta(days=DAYS_PER_WEEK - 1)


def week_dates(start: date) -> list[date]:
    return [start + timedelta(days=offset) for offset in range(DAYS_PER_WEEK)]


def is_within_week(day: date, start: date, end: Optional[date] = None) -> bool:
    """
    True when `day` falls inside [start, end], both ends inclusive.
    """
    end = end or week_end(start)
    return start <= day <= end


def range_key(start: date, end: date) -> str:
    """Cache key for a date range, e.g. '2026-10-12|2026-10-18'."""
    return f"{start.isoformat()}|{end.isoformat()}"


def parse_iso_date(value) -> date:
    """Accept a date, datetime or 'YYYY-MM-DD' (optionally with a time part)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        return date.fromisoformat(value.strip()[:10])
    raise ValueError(f"Invalid date value: {value!r}")
