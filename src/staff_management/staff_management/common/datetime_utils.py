from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(str(value)[:10], "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError("Date must be in YYYY-MM-DD format")


def parse_optional_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return parse_iso_date(value)


def parse_iso_datetime(value: str) -> datetime:
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).replace(tzinfo=None)
    except ValueError:
        raise ValidationError("Invalid date/time value")


def parse_hhmm(value: str) -> time:
    return datetime.strptime(value, "%H:%M").time()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def month_string(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def current_month(now: Optional[datetime] = None) -> str:
    now = now or now_local()
    return month_string(now.year, now.month)


def resolve_month(month: Optional[str], year: Optional[str], now: Optional[datetime] = None) -> str:
    """Build YYYY-MM from separate query values, defaulting to the current month.

    Accepts ``month`` already in ``YYYY-MM`` form as well.
    """
    now = now or now_local()
    if month and "-" in str(month):
        return str(month)
    try:
        m = int(month) if month else now.month
        y = int(year) if year else now.year
    except (TypeError, ValueError):
        raise ValidationError("Month and year must be numbers")
    if not 1 <= m <= 12:
        raise ValidationError("Month must be between 1 and 12")
    return month_string(y, m)


def month_bounds(month: str) -> Tuple[date, date]:
    """First and last day of a YYYY-MM month."""
    try:
        y, m = (int(p) for p in month.split("-"))
        last_day = calendar.monthrange(y, m)[1]
    except (AttributeError, ValueError, calendar.IllegalMonthError):
        raise ValidationError("Month must be in YYYY-MM format")
    return date(y, m, 1), date(y, m, last_day)


def previous_month(month: str) -> str:
    start, _ = month_bounds(month)
    prev = start - timedelta(days=1)
    return month_string(prev.year, prev.month)


def recent_months(month: str, count: int) -> List[str]:
    """``count`` months ending with ``month``, oldest first."""
    months = [month]
    while len(months) < count:
        months.insert(0, previous_month(months[0]))
    return months


def add_months(day: date, months: int) -> date:
    total = day.month - 1 + months
    y = day.year + total // 12
    m = total % 12 + 1
    return date(y, m, min(day.day, calendar.monthrange(y, m)[1]))


def period_start(period: str, now: datetime) -> datetime:
    """Start of a reporting window: today, week (7 days), month, quarter (90 days)."""
    if period == "week":
        return now - timedelta(days=7)
    if period == "month":
        return now - timedelta(days=30)
    if period == "quarter":
        return now - timedelta(days=90)
    if period == "year":
        return now - timedelta(days=365)
    return datetime.combine(now.date(), time.min)
