"""
Call-scoring dashboard summary.

Works over already-analyzed calls only; a call that is still queued for
scoring has no ``analyzed_at`` and is ignored.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from analytics.checklist import ChecklistLabelIndex, ChecklistRate, aggregate_checklist_rates, canonicalize
from calculator.decimal_math import round_half_up, round_int

SKILLS = ("rapport", "coverage", "closing", "objection_handling", "discovery")
HIGH_RANKS = frozenset({"HIGH", "VERY HIGH"})


@dataclass
class TeamMember:
    id: str
    name: str


@dataclass
class CallScoringRecord:
    id: str
    team_member_id: str
    team_member_name: str = ""
    potential_rank: Optional[str] = None
    overall_score: Optional[float] = None
    skill_scores: Optional[Dict[str, float]] = None
    discovery_wins: Optional[Dict[str, Any]] = None
    analyzed_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CallScoringRecord":
        return cls(
            id=str(data.get("id", "")),
            team_member_id=str(data.get("team_member_id") or ""),
            team_member_name=data.get("team_member_name") or "",
            potential_rank=data.get("potential_rank"),
            overall_score=data.get("overall_score"),
            skill_scores=data.get("skill_scores"),
            discovery_wins=data.get("discovery_wins"),
            analyzed_at=data.get("analyzed_at"),
        )


@dataclass
class MemberCallStats:
    id: str
    name: str
    total_calls: int
    avg_score: int
    high_rank_pct: int
    avg_checklist: float


@dataclass
class CallScoringSummary:
    total: int
    rank_counts: Dict[str, int]
    avg_skills: Optional[Dict[str, int]]
    checklist_rates: List[ChecklistRate]
    avg_checklist_completion: float
    member_stats: List[MemberCallStats] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _checklist_hits(checklist: Any) -> Optional[int]:
    if not isinstance(checklist, Mapping):
        return None
    return len({canonicalize(label) for label, value in checklist.items() if value is True})


def _one_decimal(value: float) -> float:
    return float(round_half_up(value, 1))


def _member_stats(member: TeamMember, calls: List[CallScoringRecord]) -> Optional[MemberCallStats]:
    if not calls:
        return None

    scores = [c.overall_score for c in calls if c.overall_score is not None]
    checklist_counts = [h for h in (_checklist_hits(c.discovery_wins) for c in calls) if h is not None]
    high = sum(1 for c in calls if c.potential_rank in HIGH_RANKS)

    return MemberCallStats(
        id=member.id,
        name=member.name,
        total_calls=len(calls),
        avg_score=round_int(sum(scores) / len(scores)) if scores else 0,
        high_rank_pct=round_int(100 * high / len(calls)),
        avg_checklist=_one_decimal(sum(checklist_counts) / len(checklist_counts)) if checklist_counts else 0.0,
    )


def summarize_calls(
    calls: Iterable[CallScoringRecord],
    team_members: Iterable[TeamMember],
    member_filter: Optional[str] = None,
    label_index: Optional[ChecklistLabelIndex] = None,
) -> Optional[CallScoringSummary]:
    """
    Summarize analyzed calls, optionally for a single team member.

    Returns None when no analyzed call matches.
    """
    analyzed = [c for c in calls if c.analyzed_at]
    if member_filter and member_filter != "all":
        analyzed = [c for c in analyzed if c.team_member_id == member_filter]
    if not analyzed:
        return None

    rank_counts: Dict[str, int] = {}
    for call in analyzed:
        if call.potential_rank:
            rank_counts[call.potential_rank] = rank_counts.get(call.potential_rank, 0) + 1

    scored = [c.skill_scores for c in analyzed if c.skill_scores is not None]
    avg_skills = None
    if scored:
        avg_skills = {
            skill: round_int(sum(s.get(skill) or 0 for s in scored) / len(scored))
            for skill in SKILLS
        }

    checklist_rates = aggregate_checklist_rates((c.discovery_wins for c in analyzed), label_index)
    checklist_calls = [h for h in (_checklist_hits(c.discovery_wins) for c in analyzed) if h is not None]
    avg_completion = _one_decimal(sum(checklist_calls) / len(checklist_calls)) if checklist_calls else 0.0

    by_member: Dict[str, List[CallScoringRecord]] = {}
    for call in analyzed:
        by_member.setdefault(call.team_member_id, []).append(call)

    member_stats = []
    for member in team_members:
        stats = _member_stats(member, by_member.get(member.id, []))
        if stats is not None:
            member_stats.append(stats)

    return CallScoringSummary(
        total=len(analyzed),
        rank_counts=rank_counts,
        avg_skills=avg_skills,
        checklist_rates=checklist_rates,
        avg_checklist_completion=avg_completion,
        member_stats=member_stats,
    )
