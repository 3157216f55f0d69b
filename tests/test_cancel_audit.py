"""
Tests for Cancel Audit statistics.

Tests cover:
- Status transitions after logging activity
- Week-over-week percent change
- Hero cards
- Weekly workflow numbers
- Per-user activity summary

The current week is Mon 2026-10-12 .. Sun 2026-10-18.
"""

from datetime import date, datetime

import pytest

from analytics.cancel_audit import (
    ActivityType,
    CancelAuditActivity,
    CancelAuditRecord,
    RecordStatus,
    ReportType,
    activity_summary_by_user,
    hero_stats,
    parse_timestamp,
    percent_change,
    status_after_activity,
    weekly_stats,
)

TODAY = date(2026, 10, 14)
WEEK = (date(2026, 10, 12), date(2026, 10, 18))


@pytest.fixture
def records():
    return [
        CancelAuditRecord(
            id="r1", household_key="hh1", report_type=ReportType.PENDING_CANCEL,
            status=RecordStatus.NEW, premium_cents=20000, created_at=datetime(2026, 10, 13, 9),
        ),
        CancelAuditRecord(
            id="r2", household_key="hh2", report_type=ReportType.CANCELLATION,
            status=RecordStatus.IN_PROGRESS, premium_cents=10000, created_at=datetime(2026, 10, 6, 9),
        ),
        CancelAuditRecord(
            id="r3", household_key="hh3", status=RecordStatus.RESOLVED,
            premium_cents=30000, created_at=datetime(2026, 10, 7, 9),
        ),
        CancelAuditRecord(
            id="r4", household_key="hh4", status=RecordStatus.NEW, premium_cents=50000,
            is_active=False, created_at=datetime(2026, 10, 13, 9),
        ),
        CancelAuditRecord(
            id="r5", household_key="hh5", status=RecordStatus.RESOLVED,
            premium_cents=20000, created_at=datetime(2026, 9, 1, 9),
        ),
    ]


def _activity(id, activity_type, household_key, when, record_id=None, user="Alice", user_id=None):
    return CancelAuditActivity(
        id=id,
        activity_type=activity_type,
        record_id=record_id,
        household_key=household_key,
        user_id=user_id or user.lower(),
        user_display_name=user,
        created_at=when,
    )


@pytest.fixture
def activities():
    return [
        _activity("a1", ActivityType.ATTEMPTED_CALL, "hh1", datetime(2026, 10, 12, 10)),
        _activity("a2", ActivityType.VOICEMAIL_LEFT, "hh1", datetime(2026, 10, 13, 10)),
        _activity("a3", ActivityType.PAYMENT_MADE, "hh3", datetime(2026, 10, 13, 11), record_id="r3", user="Bob"),
        _activity("a4", ActivityType.PAYMENT_PROMISED, "hh2", datetime(2026, 10, 14, 11), record_id="r2", user="Bob"),
        _activity("a5", ActivityType.TEXT_SENT, "hh2", datetime(2026, 10, 5, 10)),
        _activity("a6", ActivityType.PAYMENT_MADE, "hh5", datetime(2026, 10, 8, 10), record_id="r5", user="Bob"),
    ]


class TestStatusAfterActivity:

    def test_payment_resolves(self):
        assert status_after_activity("payment_made", "lost") == RecordStatus.RESOLVED
        assert status_after_activity(ActivityType.PAYMENT_MADE, RecordStatus.NEW) == RecordStatus.RESOLVED

    @pytest.mark.parametrize("activity", ["attempted_call", "spoke_with_client", "payment_promised"])
    def test_contact_moves_new_to_in_progress(self, activity):
        assert status_after_activity(activity, "new") == RecordStatus.IN_PROGRESS

    @pytest.mark.parametrize("status", ["resolved", "lost", "in_progress"])
    def test_contact_never_reopens(self, status):
        assert status_after_activity("text_sent", status) == RecordStatus(status)

    def test_note_changes_nothing(self):
        assert status_after_activity("note", "new") == RecordStatus.NEW


class TestPercentChange:

    @pytest.mark.parametrize("current,prior,expected", [
        (15, 10, 50),
        (5, 10, -50),
        (3, 0, 100),
        (0, 0, 0),
        (1, 3, -67),
        (3, 8, -62),
        (13, 8, 63),
    ])
    def test_change(self, current, prior, expected):
        assert percent_change(current, prior) == expected


class TestHeroStats:

    def test_working_list(self, records, activities):
        stats = hero_stats(records, activities, TODAY)

        assert stats.working_list_count == 2
        assert stats.at_risk_premium == 30000

    def test_week_over_week(self, records, activities):
        stats = hero_stats(records, activities, TODAY)

        assert (stats.working_list.current, stats.working_list.prior, stats.working_list.change) == (1, 2, -50)
        assert (stats.at_risk.current, stats.at_risk.prior, stats.at_risk.change) == (20000, 10000, 100)
        assert (stats.saved.current, stats.saved.prior, stats.saved.change) == (30000, 20000, 50)
        assert stats.saved_premium == 30000

    def test_payments_count_each_record_once(self, records, activities):
        activities.append(
            _activity("a7", ActivityType.PAYMENT_MADE, "hh3", datetime(2026, 10, 14, 9), record_id="r3", user="Bob")
        )

        assert hero_stats(records, activities, TODAY).saved_premium == 30000


class TestWeeklyStats:

    def test_record_counts(self, records, activities):
        stats = weekly_stats(records, activities, WEEK)

        assert stats.total_records == 5
        assert stats.active_records == 4
        assert stats.needs_attention_count == 2
        assert stats.pending_cancel_count == 1
        assert stats.cancellation_count == 1

    def test_activity_counts_within_week(self, records, activities):
        stats = weekly_stats(records, activities, WEEK)

        assert stats.total_contacts == 2
        assert stats.unique_households_contacted == 1
        assert stats.payments_made == 1
        assert stats.payments_promised == 1
        assert stats.premium_recovered == 30000
        assert stats.coverage_percent == 50

    def test_team_members_sorted_by_contacts(self, records, activities):
        stats = weekly_stats(records, activities, WEEK)

        assert [(m.name, m.contacts, m.payments_made) for m in stats.by_team_member] == [
            ("Alice", 2, 0),
            ("Bob", 0, 1),
        ]

    def test_empty_week(self):
        stats = weekly_stats([], [], WEEK)

        assert stats.coverage_percent == 0
        assert stats.by_team_member == []


class TestActivitySummary:

    def test_counts_per_user(self, activities):
        activities.append(_activity("a8", ActivityType.NOTE, "hh1", datetime(2026, 10, 14, 9), user="aaron"))

        summaries = activity_summary_by_user(activities)

        assert [s.display_name for s in summaries] == ["aaron", "Alice", "Bob"]
        alice = summaries[1]
        assert alice.counts["attempted_call"] == 1
        assert alice.counts["text_sent"] == 1
        assert alice.counts["payment_made"] == 0
        assert alice.total == 3
        assert summaries[2].to_dict()["total"] == 3


class TestFromDict:

    def test_record_from_row(self):
        record = CancelAuditRecord.from_dict({
            "id": "r9",
            "household_key": "DOE_JANE_12345",
            "insured_first_name": "Jane",
            "insured_last_name": "Doe",
            "report_type": "cancellation",
            "status": "in_progress",
            "premium_cents": "125000",
            "created_at": "2026-10-12T14:03:00Z",
            "cancel_date": "2026-10-30",
        })

        assert record.insured_name == "Jane Doe"
        assert record.report_type == ReportType.CANCELLATION
        assert record.premium_cents == 125000
        assert record.is_open
        assert record.cancel_date == date(2026, 10, 30)
        assert record.created_at.date() == date(2026, 10, 12)

    def test_parse_timestamp(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("2026-10-12") == datetime(2026, 10, 12)
        assert parse_timestamp(date(2026, 10, 12)) == datetime(2026, 10, 12)
