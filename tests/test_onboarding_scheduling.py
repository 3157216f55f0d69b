"""
Tests for onboarding task scheduling and the task calendar.

A sequence started on Wednesday 2026-10-14.
"""

from dataclasses import replace
from datetime import date

import pytest

from onboarding.scheduling import (
    ActionType,
    SequenceStep,
    TaskStatus,
    due_date_for_step,
    generate_tasks,
    refresh_statuses,
    task_calendar,
    task_status,
)

START = date(2026, 10, 14)


@pytest.fixture
def steps():
    return [
        SequenceStep(day_number=3, title="Send ID cards", action_type=ActionType.CALL),
        SequenceStep(day_number=0, title="Welcome email", action_type=ActionType.EMAIL, sort_order=1),
        SequenceStep(day_number=0, title="Welcome call", action_type=ActionType.CALL, sort_order=0),
        SequenceStep(day_number=1, title="Check-in text", action_type=ActionType.TEXT),
    ]


class TestDueDates:

    def test_business_day_offsets(self):
        assert due_date_for_step(START, 0) == START
        assert due_date_for_step(START, 3) == date(2026, 10, 19)

    def test_negative_day_rejected(self):
        with pytest.raises(ValueError):
            due_date_for_step(START, -1)

    @pytest.mark.parametrize("due,completed,expected", [
        (date(2026, 10, 14), False, TaskStatus.OVERDUE),
        (date(2026, 10, 15), False, TaskStatus.DUE),
        (date(2026, 10, 19), False, TaskStatus.PENDING),
        (date(2026, 10, 14), True, TaskStatus.COMPLETED),
    ])
    def test_task_status(self, due, completed, expected):
        assert task_status(due, date(2026, 10, 15), completed) == expected


class TestGenerateTasks:

    def test_ordered_by_day_then_sort_order(self, steps):
        tasks = generate_tasks(steps, START, date(2026, 10, 15))

        assert [t.title for t in tasks] == ["Welcome call", "Welcome email", "Check-in text", "Send ID cards"]

    def test_due_dates_and_statuses(self, steps):
        tasks = generate_tasks(steps, START, date(2026, 10, 15))

        assert [(t.due_date, t.status) for t in tasks] == [
            (date(2026, 10, 14), TaskStatus.OVERDUE),
            (date(2026, 10, 14), TaskStatus.OVERDUE),
            (date(2026, 10, 15), TaskStatus.DUE),
            (date(2026, 10, 19), TaskStatus.PENDING),
        ]

    def test_refresh_keeps_completed(self, steps):
        tasks = generate_tasks(steps, START, START)
        tasks[0] = replace(tasks[0], status=TaskStatus.COMPLETED)

        refreshed = refresh_statuses(tasks, date(2026, 10, 20))

        assert refreshed[0].status == TaskStatus.COMPLETED
        assert all(t.status == TaskStatus.OVERDUE for t in refreshed[1:])


class TestTaskCalendar:

    def test_month_grid(self, steps):
        tasks = generate_tasks(steps, START, date(2026, 10, 16))
        tasks[1] = replace(tasks[1], status=TaskStatus.COMPLETED)

        cal = task_calendar(tasks, 2026, 10, date(2026, 10, 16))
        days = {d.day.day: d for d in cal.days}

        assert len(cal.days) == 31
        assert cal.total_count == 3
        assert cal.missed_count == 2
        assert days[14].by_action_type == {"call": 1}
        assert days[14].is_missed
        assert days[16].is_today and not days[16].is_missed
        assert days[19].count == 1 and not days[19].is_past

    def test_other_month_is_empty(self, steps):
        tasks = generate_tasks(steps, START, START)

        cal = task_calendar(tasks, 2026, 11, START)

        assert cal.total_count == 0
        assert len(cal.days) == 30
