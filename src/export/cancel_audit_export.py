"""
Cancel Audit CSV export.

Filters records by the date they landed on the audit list and by status,
then writes one line per record.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Collection, List, Optional

from analytics.cancel_audit import CancelAuditRecord, RecordStatus
from calculator.decimal_math import cents_to_dollars, sum_cents
from export.csv_export import CsvExport, build_csv

CANCEL_AUDIT_HEADERS = [
    "Policy Number",
    "Insured Name",
    "Report Type",
    "Status",
    "Premium",
    "Pending Cancel Date",
    "Cancel Date",
    "Activity Count",
    "Last Activity",
    "Created",
]


@dataclass
class CancelAuditExportSummary:
    count: int
    total_premium_cents: int
    open_premium_cents: int


def filter_records(
    records: List[CancelAuditRecord],
    start: date,
    end: date,
    statuses: Optional[Collection[str]] = None,
) -> List[CancelAuditRecord]:
    """Records created between start and end inclusive, optionally limited to statuses."""
    wanted = {RecordStatus(s) for s in statuses} if statuses else None
    selected = []
    for record in records:
        if record.created_at is None or not (start <= record.created_at.date() <= end):
            continue
        if wanted is not None and record.status not in wanted:
            continue
        selected.append(record)
    return selected


def summarize(records: List[CancelAuditRecord]) -> CancelAuditExportSummary:
    return CancelAuditExportSummary(
        count=len(records),
        total_premium_cents=sum_cents(r.premium_cents for r in records),
        open_premium_cents=sum_cents(r.premium_cents for r in records if r.is_open),
    )


def _date(value) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    return value.isoformat()


def _label(value: str) -> str:
    return value.replace("_", " ").title()


def export_cancel_audit_csv(
    records: List[CancelAuditRecord],
    start: date,
    end: date,
    statuses: Optional[Collection[str]] = None,
) -> CsvExport:
    selected = filter_records(records, start, end, statuses)
    rows = [
        [
            r.policy_number,
            r.insured_name,
            _label(r.report_type.value),
            _label(r.status.value),
            f"{cents_to_dollars(r.premium_cents):.2f}",
            _date(r.pending_cancel_date),
            _date(r.cancel_date),
            r.activity_count,
            _date(r.last_activity_at),
            _date(r.created_at),
        ]
        for r in selected
    ]
    return CsvExport(
        filename=f"cancel-audit-{start.isoformat()}-to-{end.isoformat()}.csv",
        content=build_csv(CANCEL_AUDIT_HEADERS, rows),
        row_count=len(rows),
    )
