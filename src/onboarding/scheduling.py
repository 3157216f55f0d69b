"""
Onboarding sequence scheduling.

A sequence is a template of steps ("day 0: welcome call", "day 3: send
ID cards"). Assigning it to a new customer turns every step into a task
due a number of business days after the start date.
"""

import calendar
from dataclasses import dataclass, field, asdict, replace
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from calculator.business_days import add_business_days


class ActionType(str, Enum):
    CALL = "call"
    TEXT = "text"
    EMAIL = "email"
    OTHER = "other"


class TaskStatus(str, Enum):
    PENDING = "pending"
    DUE = "due"
    OVERDUE = "overdue"
    COMPLETED = "completed"


@dataclass
class SequenceStep:
    """One step of an onboarding sequence template."""
    day_number: int
    title: str
    action_type: ActionType = ActionType.OTHER
    description: str = ""
    script_template: str = ""
    sort_order: int = 0
    id: Optional[str] = None


@dataclass
class OnboardingTask:
    title: str
    day_number: int
    action_type: ActionType
    due_date: date
    status: TaskStatus
    description: str = ""
    script_template: str = ""
    step_id: Optional[str] = None
    completed_at: Optional[date] = None

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def due_date_for_step(start_date: date, day_number: int) -> date:
    """Due date of a step: ``day_number`` business days after the start date."""
    return add_business_days(start_date, day_number)


def task_status(due_date: date, today: date, completed: bool = False) -> TaskStatus:
    if completed:
        return TaskStatus.COMPLETED
    if due_date < today:
        return TaskStatus.OVERDUE
    if due_date == today:
        return TaskStatus.DUE
    return TaskStatus.PENDING


def generate_tasks(steps: Iterable[SequenceStep], start_date: date, today: date) -> List[OnboardingTask]:
    """
    Create one task per step, ordered by day then by the template's sort order.

    Raises:
        ValueError: If a step has a negative day number
    """
    tasks = []
    for step in sorted(steps, key=lambda s: (s.day_number, s.sort_order)):
        due = due_date_for_step(start_date, step.day_number)
        tasks.append(OnboardingTask(
            title=step.title,
            day_number=step.day_number,
            action_type=ActionType(step.action_type),
            due_date=due,
            status=task_status(due, today),
            description=step.description,
            script_template=step.script_template,
            step_id=step.id,
        ))
    return tasks


def refresh_statuses(tasks: Iterable[OnboardingTask], today: date) -> List[OnboardingTask]:
    """Recompute pending/due/overdue for a new day; completed tasks are left alone."""
    return [
        replace(task, status=task_status(task.due_date, today, task.is_completed))
        for task in tasks
    ]


@dataclass
class CalendarDay:
    day: date
    count: int
    is_past: bool
    is_today: bool
    is_missed: bool
    by_action_type: Dict[str, int] = field(default_factory=dict)


@dataclass
class TaskCalendar:
    year: int
    month: int
    days: List[CalendarDay]
    total_count: int
    missed_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def task_calendar(tasks: Iterable[OnboardingTask], year: int, month: int, today: date) -> TaskCalendar:
    """
    Open-task counts for every day of a month.

    Only incomplete tasks are counted. A day is missed when it is in the
    past and still has open tasks.
    """
    open_by_day: Dict[date, List[OnboardingTask]] = {}
    for task in tasks:
        if not task.is_completed:
            open_by_day.setdefault(task.due_date, []).append(task)

    days = []
    for day_number in range(1, calendar.monthrange(year, month)[1] + 1):
        day = date(year, month, day_number)
        day_tasks = open_by_day.get(day, [])
        by_type: Dict[str, int] = {}
        for task in day_tasks:
            by_type[task.action_type.value] = by_type.get(task.action_type.value, 0) + 1
        is_past = day < today
        days.append(CalendarDay(
            day=day,
            count=len(day_tasks),
            is_past=is_past,
            is_today=day == today,
            is_missed=is_past and bool(day_tasks),
            by_action_type=by_type,
        ))

    return TaskCalendar(
        year=year,
        month=month,
        days=days,
        total_count=sum(d.count for d in days),
        missed_count=sum(d.count for d in days if d.is_missed),
    )
