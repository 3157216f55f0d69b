"""Onboarding sequences: task generation and scheduling."""

from onboarding.scheduling import (
    ActionType,
    CalendarDay,
    OnboardingTask,
    SequenceStep,
    TaskCalendar,
    TaskStatus,
    due_date_for_step,
    generate_tasks,
    refresh_statuses,
    task_calendar,
    task_status,
)

__all__ = [
    "ActionType",
    "CalendarDay",
    "OnboardingTask",
    "SequenceStep",
    "TaskCalendar",
    "TaskStatus",
    "due_date_for_step",
    "generate_tasks",
    "refresh_statuses",
    "task_calendar",
    "task_status",
]
