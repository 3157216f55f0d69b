"""Vendor ROI report as copyable text and as a Metric,Value CSV."""

import re
from datetime import date
from typing import List, Optional, Tuple

from calculator.decimal_math import format_money, format_signed_percent
from calculator.roi import VendorVerifierDerived, VendorVerifierInputs
from export.csv_export import CsvExport, build_csv

MISSING = "--"


def _count(value: Optional[float]) -> str:
    if not value:
        return MISSING
    return f"{int(value)}" if float(value).is_integer() else f"{value}"


def _date(value: Optional[date]) -> str:
    if value is None:
        return MISSING
    return f"{value:%b} {value.day}, {value.year}"


def _ratio_percent(value: Optional[float]) -> str:
    if value is None:
        return MISSING
    return f"{value * 100:.1f}%"


def report_metrics(inputs: VendorVerifierInputs, derived: VendorVerifierDerived) -> List[Tuple[str, str]]:
    """Ordered (metric, value) pairs shared by the text and CSV reports."""
    return [
        ("Vendor", inputs.vendor_name or "Unknown"),
        ("Period Start", _date(inputs.date_start)),
        ("Period End", _date(inputs.date_end)),
        ("ROI", format_signed_percent(derived.roi)),
        ("Net Profit/Loss", format_money(derived.profit)),
        ("Verdict", derived.verdict.value),
        ("Amount Spent", format_money(inputs.amount_spent)),
        ("Projected Commission", format_money(derived.projected_commission)),
        ("Inbound Calls", _count(inputs.inbound_calls)),
        ("Quoted HH", _count(inputs.quoted_hh)),
        ("Closed HH", _count(inputs.closed_hh)),
        ("Policies Sold", _count(inputs.policies_sold)),
        ("Items Sold", _count(inputs.items_sold)),
        ("Premium Sold", format_money(inputs.premium_sold)),
        ("Cost per Call", format_money(derived.avg_cost_per_call)),
        ("Cost per Quoted HH", format_money(derived.cost_per_quoted_hh)),
        ("Cost per Quoted Policy", format_money(derived.cost_per_quoted_policy)),
        ("Cost per Sold Item", format_money(derived.cost_per_sold_item)),
        ("Cost per Sold Policy", format_money(derived.cost_per_sold_policy)),
        ("CPA", format_money(derived.cpa)),
        ("Policy Close Rate", _ratio_percent(derived.policy_close_rate)),
        ("Average Item Value", format_money(derived.average_item_value)),
        ("Average Policy Value", format_money(derived.average_policy_value)),
    ]


def vendor_report_text(inputs: VendorVerifierInputs, derived: VendorVerifierDerived) -> str:
    title = "VENDOR PERFORMANCE REPORT"
    lines = [
        title,
        "=" * len(title),
        f"Vendor: {inputs.vendor_name or 'Unknown'}",
        f"Period: {_date(inputs.date_start)} -> {_date(inputs.date_end)}",
        "",
        f"ROI: {format_signed_percent(derived.roi)}",
        f"Net Profit/Loss: {format_money(derived.profit)}",
        f"Verdict: {derived.verdict.value}",
        "",
        "INVESTMENT",
        f"Amount Spent: {format_money(inputs.amount_spent)}",
        f"Projected Commission: {format_money(derived.projected_commission)}",
        "",
        "ACTIVITY",
        f"Inbound Calls: {_count(inputs.inbound_calls)}",
        f"Quoted HH: {_count(inputs.quoted_hh)}",
        f"Closed HH: {_count(inputs.closed_hh)}",
        f"Policies Sold: {_count(inputs.policies_sold)}",
        "",
        "COST ANALYSIS",
        f"Cost per Call: {format_money(derived.avg_cost_per_call)}",
        f"Cost per Quoted HH: {format_money(derived.cost_per_quoted_hh)}",
        f"Cost per Sold Policy: {format_money(derived.cost_per_sold_policy)}",
        f"CPA: {format_money(derived.cpa)}",
    ]
    return "\n".join(lines)


def _slug(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "vendor"


def vendor_report_csv(inputs: VendorVerifierInputs, derived: VendorVerifierDerived) -> CsvExport:
    rows = report_metrics(inputs, derived)
    return CsvExport(
        filename=f"vendor-report-{_slug(inputs.vendor_name)}.csv",
        content=build_csv(["Metric", "Value"], rows),
        row_count=len(rows),
    )
