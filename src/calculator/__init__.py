from .business_days import (
    TimePeriod,
    add_business_days,
    get_business_days,
    get_period_bounds,
    is_business_day,
    week_bounds,
)
from .goal_pacing import (
    GoalMeasurement,
    GoalProgress,
    PromoStatus,
    calculate_goal_progress,
    is_promo_achieved,
    promo_goal_status,
)
from .roi import (
    MarketingDerived,
    MarketingInputs,
    Verdict,
    VendorVerifierDerived,
    VendorVerifierInputs,
    calculate_profit,
    calculate_roi,
    compute_marketing_forecast,
    compute_vendor_verifier,
    roi_verdict,
)

__all__ = [
    "TimePeriod",
    "add_business_days",
    "get_business_days",
    "get_period_bounds",
    "is_business_day",
    "week_bounds",
    "GoalMeasurement",
    "GoalProgress",
    "PromoStatus",
    "calculate_goal_progress",
    "is_promo_achieved",
    "promo_goal_status",
    "MarketingDerived",
    "MarketingInputs",
    "Verdict",
    "VendorVerifierDerived",
    "VendorVerifierInputs",
    "calculate_profit",
    "calculate_roi",
    "compute_marketing_forecast",
    "compute_vendor_verifier",
    "roi_verdict",
]
