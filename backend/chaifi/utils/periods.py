"""
Period key helpers for day / week / month aggregation.

Weeks are ISO weeks: Monday through Sunday. All keys are plain strings:
day "YYYY-MM-DD", week "YYYY-MM-DD" of its Monday, month "YYYY-MM".
"""
import calendar
import re
from datetime import date, datetime, timedelta, timezone
from typing import List, Tuple, Union

DateLike = Union[str, date, datetime]

_MONTH_RE = re.compile(r"^\d{4}-\d{2}$")


def parse_date(value: DateLike) -> date:
    """Parse a YYYY-MM-DD string (or date/datetime) into a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid date {value!r}, expected YYYY-MM-DD")


def format_date(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def week_start(value: DateLike) -> str:
    """
    Monday on or before the given date.

    weekday() is 0 for Monday and 6 for Sunday, so a Sunday goes back six
    days to the Monday that opened its week.
    """
    d = parse_date(value)
    return format_date(d - timedelta(days=d.weekday()))


def week_end(value: DateLike) -> str:
    """Sunday closing the week that contains the given date."""
    d = parse_date(value)
    return format_date(d + timedelta(days=6 - d.weekday()))


def week_bounds(value: DateLike) -> Tuple[str, str]:
    return week_start(value), week_end(value)


def month_key(value: DateLike) -> str:
    """YYYY-MM prefix of a date, or a YYYY-MM key passed through as-is."""
    if isinstance(value, str) and _MONTH_RE.match(value.strip()):
        year, month = value.strip().split("-")
        if not 1 <= int(month) <= 12:
            raise ValueError(f"Invalid month {value!r}, expected YYYY-MM")
        return value.strip()
    return parse_date(value).strftime("%Y-%m")


def month_bounds(month: str) -> Tuple[str, str]:
    """First and last calendar day of a YYYY-MM month."""
    key = month_key(month)
    year, mon = (int(part) for part in key.split("-"))
    last_day = calendar.monthrange(year, mon)[1]
    return format_date(date(year, mon, 1)), format_date(date(year, mon, last_day))


def week_starts_overlapping(start: DateLike, end: DateLike) -> List[str]:
    """Mondays of every week that overlaps the inclusive range [start, end]."""
    current = parse_date(week_start(start))
    last = parse_date(end)
    result = []
    while current <= last:
        result.append(format_date(current))
        current += timedelta(days=7)
    return result


def months_overlapping(start: DateLike, end: DateLike) -> List[str]:
    """Month keys touched by the inclusive range [start, end], in order."""
    year, mon = (int(part) for part in month_key(start).split("-"))
    last = month_key(end)
    result = []
    while True:
        key = f"{year:04d}-{mon:02d}"
        if key > last:
            break
        result.append(key)
        year, mon = (year + 1, 1) if mon == 12 else (year, mon + 1)
    return result


def day_name(value: DateLike) -> str:
    """Weekday name used on invoices, e.g. 'Wednesday'."""
    return parse_date(value).strftime("%A")


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the SQL backend reads back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
