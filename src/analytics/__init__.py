"""Dashboard analytics.

- Call-scoring summaries and checklist hit rates
- Cancel Audit hero cards, weekly stats and per-user activity
"""

from analytics.checklist import (
    ChecklistLabelIndex,
    ChecklistRate,
    aggregate_checklist_rates,
    canonicalize,
)
from analytics.call_scoring import (
    CallScoringRecord,
    CallScoringSummary,
    TeamMember,
    summarize_calls,
)
from analytics.cancel_audit import (
    ActivityType,
    CancelAuditActivity,
    CancelAuditRecord,
    RecordStatus,
    ReportType,
    activity_summary_by_user,
    hero_stats,
    percent_change,
    status_after_activity,
    weekly_stats,
)

__all__ = [
    "ChecklistLabelIndex",
    "ChecklistRate",
    "aggregate_checklist_rates",
    "canonicalize",
    "CallScoringRecord",
    "CallScoringSummary",
    "TeamMember",
    "summarize_calls",
    "ActivityType",
    "CancelAuditActivity",
    "CancelAuditRecord",
    "RecordStatus",
    "ReportType",
    "activity_summary_by_user",
    "hero_stats",
    "percent_change",
    "status_after_activity",
    "weekly_stats",
]
