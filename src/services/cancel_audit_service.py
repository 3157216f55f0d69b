"""
Cancel Audit Service.

Loads an agency's audit records and activities and produces the hero
cards, weekly stats and CSV export.
"""

from datetime import date
from typing import Any, Dict, List, Optional, Collection

from analytics.cancel_audit import (
    CancelAuditActivity,
    CancelAuditRecord,
    activity_summary_by_user,
    hero_stats,
    weekly_stats,
)
from calculator.business_days import week_bounds
from export.cancel_audit_export import export_cancel_audit_csv
from export.csv_export import CsvExport
from .backend_client import BackendClient
from .logging_config import get_logger, log_performance

logger = get_logger(__name__)

RECORD_COLUMNS = (
    "id,household_key,policy_number,insured_first_name,insured_last_name,report_type,status,"
    "premium_cents,is_active,created_at,pending_cancel_date,cancel_date,activity_count,last_activity_at"
)
ACTIVITY_COLUMNS = "id,activity_type,record_id,household_key,user_id,user_display_name,created_at"


def _day_start(d: date) -> str:
    return f"{d.isoformat()}T00:00:00.000Z"


def _day_end(d: date) -> str:
    return f"{d.isoformat()}T23:59:59.999Z"


class CancelAuditService:

    def __init__(self, client: Optional[BackendClient] = None):
        self._client = client or BackendClient()

    async def _records(self, agency_id: str) -> List[CancelAuditRecord]:
        rows = await self._client.select("cancel_audit_records", RECORD_COLUMNS, {"agency_id": agency_id})
        return [CancelAuditRecord.from_dict(r) for r in rows]

    async def _activities(self, agency_id: str, start: date, end: date) -> List[CancelAuditActivity]:
        rows = await self._client.select(
            "cancel_audit_activities",
            ACTIVITY_COLUMNS,
            {
                "agency_id": agency_id,
                "created_at": [("gte", _day_start(start)), ("lte", _day_end(end))],
            },
        )
        return [CancelAuditActivity.from_dict(r) for r in rows]

    @log_performance("cancel_audit_hero_stats")
    async def hero_stats(self, agency_id: str, today: date) -> Dict[str, Any]:
        prior_start, _ = week_bounds(today, weeks_back=1)
        _, current_end = week_bounds(today)
        records = await self._records(agency_id)
        activities = await self._activities(agency_id, prior_start, current_end)
        return hero_stats(records, activities, today).to_dict()

    @log_performance("cancel_audit_weekly_stats")
    async def weekly_stats(self, agency_id: str, today: date, week_offset: int = 0) -> Dict[str, Any]:
        """Stats for the week containing today, or ``week_offset`` weeks before it."""
        week = week_bounds(today, weeks_back=week_offset)
        records = await self._records(agency_id)
        activities = await self._activities(agency_id, *week)
        return weekly_stats(records, activities, week).to_dict()

    async def activity_summary(self, agency_id: str, start: date, end: date) -> List[Dict[str, Any]]:
        activities = await self._activities(agency_id, start, end)
        return [s.to_dict() for s in activity_summary_by_user(activities)]

    async def export_csv(
        self,
        agency_id: str,
        start: date,
        end: date,
        statuses: Optional[Collection[str]] = None,
    ) -> CsvExport:
        records = await self._records(agency_id)
        export = export_cancel_audit_csv(records, start, end, statuses)
        logger.info(
            f"Exported {export.row_count} cancel audit records",
            extra={"extra_data": {"agency_id": agency_id, "start": start.isoformat(), "end": end.isoformat()}},
        )
        return export
