"""
Sales goal pacing.

Given a target, a time period and a running actual, works out how much is
left, how many business days remain, the daily pace needed to close the
gap, and whether the producer is on pace relative to how much of the
period has elapsed.

Promo goals have explicit start/end dates instead of a rolling period and
are tracked as upcoming, active or ended.
"""

from dataclasses import dataclass, asdict
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from calculator.business_days import TimePeriod, get_business_days, get_period_bounds
from calculator.decimal_math import format_money


class GoalMeasurement(str, Enum):
    """What a goal counts."""
    PREMIUM = "premium"
    ITEMS = "items"
    POLICIES = "policies"
    HOUSEHOLDS = "households"


class PromoStatus(str, Enum):
    UPCOMING = "upcoming"
    ACTIVE = "active"
    ENDED = "ended"


@dataclass
class GoalProgress:
    """Progress of one goal at a point in time."""
    target: float
    current: float
    remaining: float
    percent_complete: float
    daily_pace: float
    business_days_left: int
    business_days_elapsed: int
    total_business_days: int
    expected_percent: float
    on_pace: bool
    period_start: date
    period_end: date

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def calculate_goal_progress(
    target: float,
    actual: float,
    time_period: Union[str, TimePeriod, None],
    today: date,
) -> GoalProgress:
    """
    Compute pacing for a goal over the period containing today.

    The on-pace comparison uses the uncapped completion percentage, so a
    producer who has already beaten the target is on pace even though the
    reported percent_complete is capped at 100.
    """
    start, end = get_period_bounds(time_period, today)

    remaining = max(0.0, target - actual)
    raw_percent = (actual / target) * 100 if target > 0 else 0.0

    total_business_days = get_business_days(start, end)
    business_days_elapsed = get_business_days(start, min(today, end))
    business_days_left = get_business_days(today, end)

    daily_pace = remaining / business_days_left if business_days_left > 0 else remaining

    expected_percent = (
        (business_days_elapsed / total_business_days) * 100 if total_business_days > 0 else 0.0
    )

    return GoalProgress(
        target=target,
        current=actual,
        remaining=remaining,
        percent_complete=min(100.0, raw_percent),
        daily_pace=daily_pace,
        business_days_left=business_days_left,
        business_days_elapsed=business_days_elapsed,
        total_business_days=total_business_days,
        expected_percent=expected_percent,
        on_pace=raw_percent >= expected_percent,
        period_start=start,
        period_end=end,
    )


def promo_goal_status(start_date: date, end_date: date, today: date) -> Tuple[PromoStatus, int]:
    """
    Status of a promo window and the days left in (or until) it.

    Active promos count today and the end date, so a promo ending today has
    one day remaining.
    """
    if today < start_date:
        return PromoStatus.UPCOMING, (start_date - today).days
    if today > end_date:
        return PromoStatus.ENDED, 0
    return PromoStatus.ACTIVE, max(0, (end_date - today).days + 1)


def is_promo_achieved(progress: float, target: float) -> bool:
    return target > 0 and progress >= target


def format_goal_value(value: Optional[float], measurement: Union[str, GoalMeasurement]) -> str:
    """Premium goals render as currency, count goals as whole numbers."""
    if value is None:
        return "--"
    if GoalMeasurement(measurement) == GoalMeasurement.PREMIUM:
        return format_money(value)
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.1f}"
