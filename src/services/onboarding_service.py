"""Onboarding Service - sequence previews and the monthly task calendar."""

import calendar
from datetime import date
from typing import Any, Dict, List, Optional

from analytics.cancel_audit import parse_timestamp
from onboarding.scheduling import (
    ActionType,
    OnboardingTask,
    SequenceStep,
    TaskStatus,
    generate_tasks,
    refresh_statuses,
    task_calendar,
)
from .backend_client import BackendClient
from .logging_config import get_logger

logger = get_logger(__name__)

STEP_COLUMNS = "id,day_number,action_type,title,description,script_template,sort_order"
TASK_COLUMNS = "id,step_id,day_number,action_type,title,description,due_date,status,completed_at"


def step_from_row(row: Dict[str, Any]) -> SequenceStep:
    return SequenceStep(
        id=row.get("id"),
        day_number=int(row.get("day_number") or 0),
        title=row.get("title") or "",
        action_type=ActionType(row.get("action_type") or ActionType.OTHER),
        description=row.get("description") or "",
        script_template=row.get("script_template") or "",
        sort_order=int(row.get("sort_order") or 0),
    )


def task_from_row(row: Dict[str, Any]) -> OnboardingTask:
    completed_at = parse_timestamp(row.get("completed_at"))
    return OnboardingTask(
        title=row.get("title") or "",
        day_number=int(row.get("day_number") or 0),
        action_type=ActionType(row.get("action_type") or ActionType.OTHER),
        due_date=parse_timestamp(row["due_date"]).date(),
        status=TaskStatus(row.get("status") or TaskStatus.PENDING),
        description=row.get("description") or "",
        step_id=row.get("step_id"),
        completed_at=completed_at.date() if completed_at else None,
    )


class OnboardingService:

    def __init__(self, client: Optional[BackendClient] = None):
        self._client = client or BackendClient()

    async def preview_sequence(self, sequence_id: str, start_date: date, today: date) -> List[OnboardingTask]:
        """Tasks a sequence would create if assigned with the given start date."""
        rows = await self._client.select(
            "onboarding_sequence_steps",
            STEP_COLUMNS,
            {"sequence_id": sequence_id},
            order="sort_order.asc",
        )
        return generate_tasks([step_from_row(r) for r in rows], start_date, today)

    async def calendar(self, agency_id: str, year: int, month: int, today: date) -> Dict[str, Any]:
        first = date(year, month, 1)
        last = date(year, month, calendar.monthrange(year, month)[1])
        rows = await self._client.select(
            "onboarding_tasks",
            TASK_COLUMNS,
            {"agency_id": agency_id, "due_date": [("gte", first.isoformat()), ("lte", last.isoformat())]},
        )
        tasks = refresh_statuses([task_from_row(r) for r in rows], today)
        logger.debug(f"Loaded {len(tasks)} onboarding tasks for {year}-{month:02d}")
        return task_calendar(tasks, year, month, today).to_dict()
