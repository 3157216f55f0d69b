"""
Sales Goals API

Goal pacing for ad-hoc numbers and live progress for an agency's active
goals.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query
from pydantic import BaseModel, Field

from calculator.business_days import TimePeriod
from calculator.goal_pacing import calculate_goal_progress, is_promo_achieved, promo_goal_status
from services.goal_service import GoalService
from web.dependencies import bind_agency_context, get_goal_service, get_today
from web.errors import APIError, ErrorCode

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Sales Goals"])


class GoalProgressRequest(BaseModel):
    target: float = Field(..., ge=0, description="Goal target")
    actual: float = Field(default=0, ge=0, description="Current value")
    time_period: str = Field(default=TimePeriod.MONTHLY.value, description="weekly, monthly, quarterly, annual")
    today: Optional[date] = Field(default=None, description="Evaluation date, defaults to today")


class PromoStatusRequest(BaseModel):
    start_date: date
    end_date: date
    today: Optional[date] = None
    progress: Optional[float] = Field(default=None, ge=0)
    target: Optional[float] = Field(default=None, ge=0)


@router.post("/goals/progress")
async def goal_progress(request: GoalProgressRequest, today: date = Depends(get_today)):
    """Pacing for a target over the period containing the evaluation date."""
    progress = calculate_goal_progress(
        request.target, request.actual, request.time_period, request.today or today
    )
    return progress.to_dict()


@router.post("/goals/promo-status")
async def promo_status(request: PromoStatusRequest, today: date = Depends(get_today)):
    if request.end_date < request.start_date:
        raise APIError(ErrorCode.VALIDATION_ERROR, "end_date must be on or after start_date")

    status, days_remaining = promo_goal_status(request.start_date, request.end_date, request.today or today)
    result = {"status": status.value, "days_remaining": days_remaining}
    if request.progress is not None and request.target is not None:
        result["achieved"] = is_promo_achieved(request.progress, request.target)
    return result


@router.get("/agencies/{agency_id}/goals/progress", dependencies=[Depends(bind_agency_context)])
async def agency_goal_progress(
    agency_id: str,
    team_member_id: Optional[str] = Query(default=None),
    today: date = Depends(get_today),
    service: GoalService = Depends(get_goal_service),
):
    goals = await service.goal_progress(agency_id, today, team_member_id)
    return {"agency_id": agency_id, "as_of": today.isoformat(), "goals": goals}


@router.get("/staff/promo-goals")
async def staff_promo_goals(
    x_staff_session: Optional[str] = Header(default=None),
    today: date = Depends(get_today),
    service: GoalService = Depends(get_goal_service),
):
    """Active and upcoming promos for the staff member behind the session token."""
    if not x_staff_session:
        raise APIError(ErrorCode.AUTH_REQUIRED, "Missing staff session token")
    promos = await service.staff_promo_goals(x_staff_session, today)
    return {"as_of": today.isoformat(), "promos": promos}
