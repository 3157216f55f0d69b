"""
Business-day arithmetic.

Shared by sales-goal pacing and onboarding task scheduling. A business day
is Monday through Friday; holidays are not modelled.
"""

import calendar
from datetime import date, timedelta
from enum import Enum
from typing import Tuple, Union


class TimePeriod(str, Enum):
    """Goal time periods."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"

    @classmethod
    def parse(cls, value: Union[str, "TimePeriod", None]) -> "TimePeriod":
        """Unknown or missing periods fall back to monthly."""
        if isinstance(value, TimePeriod):
            return value
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.MONTHLY


def is_business_day(d: date) -> bool:
    return d.weekday() < 5


def get_business_days(start: date, end: date) -> int:
    """
    Count Mon-Fri days in the inclusive range [start, end].

    Returns 0 when end is before start.

    Examples:
        >>> get_business_days(date(2026, 10, 12), date(2026, 10, 18))
        5
    """
    if end < start:
        return 0

    total_days = (end - start).days + 1
    full_weeks, extra_days = divmod(total_days, 7)
    count = full_weeks * 5

    weekday = start.weekday()
    for offset in range(extra_days):
        if (weekday + offset) % 7 < 5:
            count += 1
    return count


def add_business_days(start: date, offset: int) -> date:
    """
    Move forward `offset` business days from start.

    An offset of 0 returns start itself, even when start falls on a weekend.

    Raises:
        ValueError: If offset is negative
    """
    if offset < 0:
        raise ValueError(f"Business-day offset must be >= 0, got {offset}")

    current = start
    added = 0
    while added < offset:
        current += timedelta(days=1)
        if is_business_day(current):
            added += 1
    return current


def _last_day(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def get_period_bounds(time_period: Union[str, TimePeriod, None], today: date) -> Tuple[date, date]:
    """
    Calendar bounds of the period containing today.

    Weeks run Monday to Sunday.
    """
    period = TimePeriod.parse(time_period)

    if period == TimePeriod.WEEKLY:
        start = today - timedelta(days=today.weekday())
        return start, start + timedelta(days=6)

    if period == TimePeriod.QUARTERLY:
        first_month = 3 * ((today.month - 1) // 3) + 1
        return date(today.year, first_month, 1), _last_day(today.year, first_month + 2)

    if period == TimePeriod.ANNUAL:
        return date(today.year, 1, 1), date(today.year, 12, 31)

    return date(today.year, today.month, 1), _last_day(today.year, today.month)


def week_bounds(today: date, weeks_back: int = 0) -> Tuple[date, date]:
    """Monday..Sunday of the week containing today, shifted back by weeks_back weeks."""
    start = today - timedelta(days=today.weekday(), weeks=weeks_back)
    return start, start + timedelta(days=6)
