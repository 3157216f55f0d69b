"""
Cancel Audit API

Hero cards, weekly workflow stats, per-user activity and CSV export for an
agency's cancel audit list.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from analytics.cancel_audit import RecordStatus
from services.cancel_audit_service import CancelAuditService
from web.dependencies import bind_agency_context, get_cancel_audit_service, get_today
from web.errors import APIError, ErrorCode

router = APIRouter(
    prefix="/api/v1/agencies/{agency_id}/cancel-audit",
    tags=["Cancel Audit"],
    dependencies=[Depends(bind_agency_context)],
)


def _check_range(start: date, end: date) -> None:
    if end < start:
        raise APIError(ErrorCode.VALIDATION_ERROR, "end must be on or after start")


@router.get("/hero-stats")
async def hero_stats(
    agency_id: str,
    today: date = Depends(get_today),
    service: CancelAuditService = Depends(get_cancel_audit_service),
):
    """Working list, premium at risk and premium saved this week, with week-over-week change."""
    return await service.hero_stats(agency_id, today)


@router.get("/weekly-stats")
async def weekly_stats(
    agency_id: str,
    week_offset: int = Query(default=0, ge=0, le=52, description="Weeks before the current week"),
    today: date = Depends(get_today),
    service: CancelAuditService = Depends(get_cancel_audit_service),
):
    return await service.weekly_stats(agency_id, today, week_offset)


@router.get("/activity-summary")
async def activity_summary(
    agency_id: str,
    start: date = Query(...),
    end: date = Query(...),
    service: CancelAuditService = Depends(get_cancel_audit_service),
):
    _check_range(start, end)
    return {"users": await service.activity_summary(agency_id, start, end)}


@router.get("/export.csv")
async def export_csv(
    agency_id: str,
    start: date = Query(...),
    end: date = Query(...),
    status: Optional[List[str]] = Query(default=None, description="Limit to these record statuses"),
    service: CancelAuditService = Depends(get_cancel_audit_service),
):
    _check_range(start, end)
    if status:
        allowed = {s.value for s in RecordStatus}
        unknown = [s for s in status if s not in allowed]
        if unknown:
            raise APIError(
                ErrorCode.VALIDATION_ERROR,
                f"Unknown status: {', '.join(unknown)}",
                details={"allowed": sorted(allowed)},
            )

    export = await service.export_csv(agency_id, start, end, status)
    return Response(
        content=export.content,
        media_type=export.content_type,
        headers={"Content-Disposition": export.content_disposition, "X-Row-Count": str(export.row_count)},
    )
