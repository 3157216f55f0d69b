"""
ROI calculators.

- calculate_roi / calculate_profit: commission vs spend
- compute_vendor_verifier: per-unit costs for a lead vendor over a period
- compute_marketing_forecast: forward projection from spend and funnel rates

Every ratio is None when its inputs are incomplete; nothing here divides
by zero.
"""

import math
from dataclasses import dataclass, asdict
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional

from calculator.decimal_math import divide_or_none, round_int


class Verdict(str, Enum):
    INCOMPLETE_DATA = "INCOMPLETE DATA"
    HIGHLY_PROFITABLE = "HIGHLY PROFITABLE"
    PROFITABLE = "PROFITABLE"
    MARGINAL = "MARGINAL"
    LOSING_MONEY = "LOSING MONEY"


HIGHLY_PROFITABLE_ROI = 50.0
MARGINAL_ROI_FLOOR = -25.0


def calculate_roi(commission: Optional[float], spend: Optional[float]) -> Optional[float]:
    """
    Return on spend as a percentage: (commission - spend) / spend * 100.

    None when spend is zero, negative or unknown, or commission is unknown.
    """
    if commission is None or spend is None or spend <= 0:
        return None
    return (commission - spend) / spend * 100


def calculate_profit(commission: Optional[float], spend: Optional[float]) -> Optional[float]:
    if commission is None or spend is None or spend <= 0:
        return None
    return commission - spend


def roi_verdict(roi: Optional[float]) -> Verdict:
    if roi is None:
        return Verdict.INCOMPLETE_DATA
    if roi >= HIGHLY_PROFITABLE_ROI:
        return Verdict.HIGHLY_PROFITABLE
    if roi >= 0:
        return Verdict.PROFITABLE
    if roi >= MARGINAL_ROI_FLOOR:
        return Verdict.MARGINAL
    return Verdict.LOSING_MONEY


def clamp_percent(value: float) -> float:
    if not math.isfinite(value):
        return 0.0
    return max(0.0, min(100.0, value))


def normalize_percent(value: Optional[float]) -> float:
    """
    Interpret user-entered percentages.

    Values strictly between 0 and 1 are taken as fractions (0.25 -> 25).
    """
    if value is None or not math.isfinite(value):
        return 0.0
    if 0 < value < 1:
        value = value * 100
    return clamp_percent(value)


# =============================================================================
# VENDOR VERIFIER
# =============================================================================

@dataclass
class VendorVerifierInputs:
    """What an agency actually bought from a lead vendor and what it produced."""
    vendor_name: str = ""
    date_start: Optional[date] = None
    date_end: Optional[date] = None
    amount_spent: Optional[float] = None
    inbound_calls: Optional[float] = None
    quoted_hh: Optional[float] = None
    closed_hh: Optional[float] = None
    policies_quoted: Optional[float] = None
    policies_sold: Optional[float] = None
    items_quoted: Optional[float] = None
    items_sold: Optional[float] = None
    premium_sold: Optional[float] = None
    commission_pct: Optional[float] = None


@dataclass
class VendorVerifierDerived:
    avg_cost_per_call: Optional[float]
    cost_per_quoted_hh: Optional[float]
    cost_per_quoted_policy: Optional[float]
    cost_per_quoted_item: Optional[float]
    cost_per_sold_item: Optional[float]
    cost_per_sold_policy: Optional[float]
    cpa: Optional[float]
    policy_close_rate: Optional[float]
    average_item_value: Optional[float]
    average_policy_value: Optional[float]
    projected_commission: Optional[float]
    roi: Optional[float]
    profit: Optional[float]
    verdict: Verdict

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["verdict"] = self.verdict.value
        return data


def compute_vendor_verifier(inputs: VendorVerifierInputs) -> VendorVerifierDerived:
    spent = inputs.amount_spent

    projected_commission = None
    if inputs.premium_sold is not None:
        pct = clamp_percent(inputs.commission_pct or 0.0)
        projected_commission = inputs.premium_sold * pct / 100

    # zero commission -> -100% ROI; only missing premium leaves it undefined
    roi = calculate_roi(projected_commission, spent)

    return VendorVerifierDerived(
        avg_cost_per_call=divide_or_none(spent, inputs.inbound_calls),
        cost_per_quoted_hh=divide_or_none(spent, inputs.quoted_hh),
        cost_per_quoted_policy=divide_or_none(spent, inputs.policies_quoted),
        cost_per_quoted_item=divide_or_none(spent, inputs.items_quoted),
        cost_per_sold_item=divide_or_none(spent, inputs.items_sold),
        cost_per_sold_policy=divide_or_none(spent, inputs.policies_sold),
        cpa=divide_or_none(spent, inputs.closed_hh),
        policy_close_rate=divide_or_none(inputs.policies_sold, inputs.policies_quoted),
        average_item_value=divide_or_none(inputs.premium_sold, inputs.items_sold),
        average_policy_value=divide_or_none(inputs.premium_sold, inputs.policies_sold),
        projected_commission=projected_commission,
        roi=roi,
        profit=calculate_profit(projected_commission, spent),
        verdict=roi_verdict(roi),
    )


# =============================================================================
# MARKETING FORECAST
# =============================================================================

@dataclass
class MarketingInputs:
    lead_source: str = ""
    spend: float = 0.0
    cpl: float = 0.0
    quote_rate_pct: float = 0.0
    close_rate_pct: float = 0.0
    avg_item_value: float = 0.0
    avg_items_per_hh: float = 0.0
    commission_pct: float = 0.0


@dataclass
class MarketingDerived:
    total_leads: int
    quoted_hh: int
    cost_per_quoted_hh: Optional[float]
    closed_hh: int
    sold_items: int
    sold_premium: float
    total_comp: float
    roi: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def compute_marketing_forecast(inputs: MarketingInputs) -> MarketingDerived:
    """Project the funnel forward from spend and cost per lead."""
    spend = max(0.0, inputs.spend)
    total_leads = math.floor(spend / inputs.cpl) if inputs.cpl > 0 else 0

    quoted_hh = round_int(total_leads * normalize_percent(inputs.quote_rate_pct) / 100)
    closed_hh = round_int(quoted_hh * normalize_percent(inputs.close_rate_pct) / 100)
    sold_items = round_int(closed_hh * max(0.0, inputs.avg_items_per_hh))
    sold_premium = sold_items * max(0.0, inputs.avg_item_value)
    total_comp = sold_premium * normalize_percent(inputs.commission_pct) / 100

    return MarketingDerived(
        total_leads=total_leads,
        quoted_hh=quoted_hh,
        cost_per_quoted_hh=divide_or_none(spend, quoted_hh),
        closed_hh=closed_hh,
        sold_items=sold_items,
        sold_premium=sold_premium,
        total_comp=total_comp,
        roi=calculate_roi(total_comp, spend),
    )
