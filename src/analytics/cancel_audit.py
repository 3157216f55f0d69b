"""
Cancel Audit statistics.

Cancel Audit is the retention workflow for policies on a carrier's
pending-cancel or cancellation report. Staff log contact attempts and
payments against each household; these functions turn the records and
activities into the dashboard's hero cards and weekly numbers.

All premium figures are integer cents.
"""

import math
from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from calculator.business_days import week_bounds
from calculator.decimal_math import round_int


class RecordStatus(str, Enum):
    NEW = "new"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    LOST = "lost"


class ReportType(str, Enum):
    PENDING_CANCEL = "pending_cancel"
    CANCELLATION = "cancellation"


class ActivityType(str, Enum):
    ATTEMPTED_CALL = "attempted_call"
    VOICEMAIL_LEFT = "voicemail_left"
    TEXT_SENT = "text_sent"
    EMAIL_SENT = "email_sent"
    SPOKE_WITH_CLIENT = "spoke_with_client"
    PAYMENT_MADE = "payment_made"
    PAYMENT_PROMISED = "payment_promised"
    NOTE = "note"


CONTACT_ACTIVITY_TYPES = frozenset({
    ActivityType.ATTEMPTED_CALL,
    ActivityType.VOICEMAIL_LEFT,
    ActivityType.TEXT_SENT,
    ActivityType.EMAIL_SENT,
    ActivityType.SPOKE_WITH_CLIENT,
})

OPEN_STATUSES = frozenset({RecordStatus.NEW, RecordStatus.IN_PROGRESS})


def parse_timestamp(value: Union[str, datetime, date, None]) -> Optional[datetime]:
    """Parse a backend timestamp ("2026-10-12T14:03:00Z", a bare date, or a datetime)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _parse_date(value: Any) -> Optional[date]:
    parsed = parse_timestamp(value)
    return parsed.date() if parsed else None


@dataclass
class CancelAuditRecord:
    id: str
    household_key: str = ""
    policy_number: str = ""
    insured_first_name: str = ""
    insured_last_name: str = ""
    report_type: ReportType = ReportType.PENDING_CANCEL
    status: RecordStatus = RecordStatus.NEW
    premium_cents: int = 0
    is_active: bool = True
    created_at: Optional[datetime] = None
    pending_cancel_date: Optional[date] = None
    cancel_date: Optional[date] = None
    activity_count: int = 0
    last_activity_at: Optional[datetime] = None

    @property
    def insured_name(self) -> str:
        return f"{self.insured_first_name} {self.insured_last_name}".strip()

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CancelAuditRecord":
        return cls(
            id=str(data["id"]),
            household_key=data.get("household_key") or "",
            policy_number=data.get("policy_number") or "",
            insured_first_name=data.get("insured_first_name") or "",
            insured_last_name=data.get("insured_last_name") or "",
            report_type=ReportType(data.get("report_type") or ReportType.PENDING_CANCEL),
            status=RecordStatus(data.get("status") or RecordStatus.NEW),
            premium_cents=int(data.get("premium_cents") or 0),
            is_active=bool(data.get("is_active", True)),
            created_at=parse_timestamp(data.get("created_at")),
            pending_cancel_date=_parse_date(data.get("pending_cancel_date")),
            cancel_date=_parse_date(data.get("cancel_date")),
            activity_count=int(data.get("activity_count") or 0),
            last_activity_at=parse_timestamp(data.get("last_activity_at")),
        )


@dataclass
class CancelAuditActivity:
    id: str
    activity_type: ActivityType
    record_id: Optional[str] = None
    household_key: str = ""
    user_id: Optional[str] = None
    user_display_name: str = ""
    created_at: Optional[datetime] = None

    @property
    def is_contact(self) -> bool:
        return self.activity_type in CONTACT_ACTIVITY_TYPES

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CancelAuditActivity":
        return cls(
            id=str(data.get("id", "")),
            activity_type=ActivityType(data["activity_type"]),
            record_id=data.get("record_id"),
            household_key=data.get("household_key") or "",
            user_id=data.get("user_id"),
            user_display_name=data.get("user_display_name") or "",
            created_at=parse_timestamp(data.get("created_at")),
        )


def status_after_activity(
    activity_type: Union[str, ActivityType],
    current_status: Union[str, RecordStatus],
) -> RecordStatus:
    """
    Record status after logging an activity.

    A payment resolves the household outright. A promise or any contact
    only moves a household out of ``new``; it never reopens a resolved or
    lost one.
    """
    activity = ActivityType(activity_type)
    status = RecordStatus(current_status)

    if activity == ActivityType.PAYMENT_MADE:
        return RecordStatus.RESOLVED
    if activity == ActivityType.PAYMENT_PROMISED or activity in CONTACT_ACTIVITY_TYPES:
        if status == RecordStatus.NEW:
            return RecordStatus.IN_PROGRESS
    return status


def percent_change(current: float, prior: float) -> int:
    """
    Week-over-week change as a whole percentage.

    Examples:
        >>> percent_change(15, 10)
        50
        >>> percent_change(3, 0)
        100
        >>> percent_change(3, 8)
        -62
        >>> percent_change(0, 0)
        0
    """
    if prior == 0:
        return 100 if current > 0 else 0
    # halves round toward positive infinity: -62.5 -> -62
    return math.floor(100 * (current - prior) / prior + 0.5)


def _in_range(moment: Optional[datetime], start: date, end: date) -> bool:
    return moment is not None and start <= moment.date() <= end


def _premium(records: Iterable[CancelAuditRecord]) -> int:
    return sum(r.premium_cents or 0 for r in records)


def saved_premium(
    records: Iterable[CancelAuditRecord],
    activities: Iterable[CancelAuditActivity],
    start: date,
    end: date,
) -> int:
    """Premium of distinct records with a payment logged between start and end."""
    paid_ids = {
        a.record_id
        for a in activities
        if a.activity_type == ActivityType.PAYMENT_MADE and a.record_id and _in_range(a.created_at, start, end)
    }
    return _premium(r for r in records if r.id in paid_ids)


@dataclass
class WeekOverWeek:
    current: int
    prior: int
    change: int


@dataclass
class HeroStats:
    working_list_count: int
    at_risk_premium: int
    saved_premium: int
    working_list: WeekOverWeek
    at_risk: WeekOverWeek
    saved: WeekOverWeek

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def hero_stats(
    records: List[CancelAuditRecord],
    activities: List[CancelAuditActivity],
    today: date,
) -> HeroStats:
    """Hero cards for the week containing today, compared with the week before."""
    current_start, current_end = week_bounds(today)
    prior_start, prior_end = week_bounds(today, weeks_back=1)

    working_list = [r for r in records if r.is_active and r.is_open]

    def created_in(start: date, end: date) -> List[CancelAuditRecord]:
        return [r for r in records if r.is_active and _in_range(r.created_at, start, end)]

    current_week = created_in(current_start, current_end)
    prior_week = created_in(prior_start, prior_end)
    current_at_risk = _premium(r for r in current_week if r.is_open)
    prior_at_risk = _premium(r for r in prior_week if r.is_open)

    current_saved = saved_premium(records, activities, current_start, current_end)
    prior_saved = saved_premium(records, activities, prior_start, prior_end)

    return HeroStats(
        working_list_count=len(working_list),
        at_risk_premium=_premium(working_list),
        saved_premium=current_saved,
        working_list=WeekOverWeek(len(current_week), len(prior_week), percent_change(len(current_week), len(prior_week))),
        at_risk=WeekOverWeek(current_at_risk, prior_at_risk, percent_change(current_at_risk, prior_at_risk)),
        saved=WeekOverWeek(current_saved, prior_saved, percent_change(current_saved, prior_saved)),
    )


@dataclass
class TeamMemberActivity:
    name: str
    contacts: int = 0
    payments_made: int = 0


@dataclass
class WeeklyStats:
    week_start: date
    week_end: date
    total_records: int
    active_records: int
    needs_attention_count: int
    pending_cancel_count: int
    cancellation_count: int
    total_contacts: int
    unique_households_contacted: int
    payments_made: int
    payments_promised: int
    premium_recovered: int
    coverage_percent: int
    by_team_member: List[TeamMemberActivity] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def weekly_stats(
    records: List[CancelAuditRecord],
    activities: List[CancelAuditActivity],
    week: Tuple[date, date],
) -> WeeklyStats:
    """
    Workflow numbers for one Monday..Sunday week.

    Activities outside the week are ignored. Coverage is the share of
    households still needing attention that were contacted this week.
    """
    week_start, week_end = week
    week_activities = [a for a in activities if _in_range(a.created_at, week_start, week_end)]

    active = [r for r in records if r.is_active]
    needs_attention = [r for r in active if r.is_open]

    contacts = [a for a in week_activities if a.is_contact]
    households_contacted = {a.household_key for a in contacts}
    households_open = {r.household_key for r in needs_attention}

    payments = [a for a in week_activities if a.activity_type == ActivityType.PAYMENT_MADE]
    paid_ids = {a.record_id for a in payments}

    by_member: Dict[str, TeamMemberActivity] = {}
    for activity in week_activities:
        stats = by_member.setdefault(activity.user_display_name, TeamMemberActivity(activity.user_display_name))
        if activity.is_contact:
            stats.contacts += 1
        if activity.activity_type == ActivityType.PAYMENT_MADE:
            stats.payments_made += 1

    return WeeklyStats(
        week_start=week_start,
        week_end=week_end,
        total_records=len(records),
        active_records=len(active),
        needs_attention_count=len(needs_attention),
        pending_cancel_count=sum(1 for r in needs_attention if r.report_type == ReportType.PENDING_CANCEL),
        cancellation_count=sum(1 for r in needs_attention if r.report_type == ReportType.CANCELLATION),
        total_contacts=len(contacts),
        unique_households_contacted=len(households_contacted),
        payments_made=len(payments),
        payments_promised=sum(1 for a in week_activities if a.activity_type == ActivityType.PAYMENT_PROMISED),
        premium_recovered=_premium(r for r in records if r.id in paid_ids),
        coverage_percent=round_int(100 * len(households_contacted) / len(households_open)) if households_open else 0,
        by_team_member=sorted(by_member.values(), key=lambda m: m.contacts, reverse=True),
    )


@dataclass
class UserActivitySummary:
    user_id: Optional[str]
    display_name: str
    counts: Dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["total"] = self.total
        return data


def activity_summary_by_user(activities: Iterable[CancelAuditActivity]) -> List[UserActivitySummary]:
    """Per-user count of every activity type, sorted by display name."""
    summaries: Dict[Tuple[Optional[str], str], UserActivitySummary] = {}
    for activity in activities:
        key = (activity.user_id, activity.user_display_name)
        summary = summaries.get(key)
        if summary is None:
            summary = UserActivitySummary(
                user_id=activity.user_id,
                display_name=activity.user_display_name,
                counts={t.value: 0 for t in ActivityType},
            )
            summaries[key] = summary
        summary.counts[activity.activity_type.value] += 1

    return sorted(summaries.values(), key=lambda s: s.display_name.casefold())
