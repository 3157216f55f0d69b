"""
Onboarding API

Schedules onboarding sequence steps as dated tasks and renders the
monthly task calendar.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from onboarding.scheduling import ActionType, SequenceStep, generate_tasks, task_calendar
from services.onboarding_service import OnboardingService
from web.dependencies import bind_agency_context, get_onboarding_service, get_today

router = APIRouter(prefix="/api/v1", tags=["Onboarding"])


class StepInput(BaseModel):
    day_number: int = Field(..., ge=0, description="Business days after the start date")
    title: str
    action_type: ActionType = ActionType.OTHER
    description: str = ""
    script_template: str = ""
    sort_order: int = 0
    id: Optional[str] = None


class ScheduleRequest(BaseModel):
    start_date: date
    steps: List[StepInput] = Field(default_factory=list)
    today: Optional[date] = None
    calendar_month: Optional[int] = Field(default=None, ge=1, le=12)
    calendar_year: Optional[int] = Field(default=None, ge=2000, le=2100)


@router.post("/onboarding/schedule")
async def schedule(request: ScheduleRequest, today: date = Depends(get_today)):
    """Dated tasks for the posted steps, plus an optional month calendar of them."""
    as_of = request.today or today
    tasks = generate_tasks(
        [SequenceStep(**step.model_dump()) for step in request.steps],
        request.start_date,
        as_of,
    )
    result = {"tasks": [t.to_dict() for t in tasks]}
    if request.calendar_month and request.calendar_year:
        result["calendar"] = task_calendar(tasks, request.calendar_year, request.calendar_month, as_of).to_dict()
    return result


@router.get("/onboarding/sequences/{sequence_id}/preview")
async def preview_sequence(
    sequence_id: str,
    start_date: date = Query(...),
    today: date = Depends(get_today),
    service: OnboardingService = Depends(get_onboarding_service),
):
    tasks = await service.preview_sequence(sequence_id, start_date, today)
    return {"tasks": [t.to_dict() for t in tasks]}


@router.get("/agencies/{agency_id}/onboarding/calendar", dependencies=[Depends(bind_agency_context)])
async def agency_calendar(
    agency_id: str,
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    today: date = Depends(get_today),
    service: OnboardingService = Depends(get_onboarding_service),
):
    return await service.calendar(agency_id, year, month, today)
