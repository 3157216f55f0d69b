"""
Call Scoring API

Summaries of analyzed calls, computed either from posted calls or from an
agency's stored calls.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from analytics.call_scoring import CallScoringRecord, TeamMember, summarize_calls
from analytics.checklist import ChecklistLabelIndex, canonicalize
from services.call_scoring_service import CallScoringService
from web.dependencies import bind_agency_context, get_call_scoring_service

router = APIRouter(prefix="/api/v1", tags=["Call Scoring"])


class CallInput(BaseModel):
    id: str
    team_member_id: str
    team_member_name: str = ""
    potential_rank: Optional[str] = None
    overall_score: Optional[float] = None
    skill_scores: Optional[Dict[str, float]] = None
    discovery_wins: Optional[Dict[str, Any]] = None
    analyzed_at: Optional[datetime] = None


class TeamMemberInput(BaseModel):
    id: str
    name: str


class CallSummaryRequest(BaseModel):
    calls: List[CallInput] = Field(default_factory=list)
    team_members: List[TeamMemberInput] = Field(default_factory=list)
    member_filter: Optional[str] = Field(default=None, description="Team member id, or 'all'")


class CanonicalizeRequest(BaseModel):
    labels: List[str] = Field(..., description="Checklist labels as recorded by scoring runs")


@router.post("/call-scoring/summary")
async def call_scoring_summary(request: CallSummaryRequest):
    summary = summarize_calls(
        [CallScoringRecord(**c.model_dump()) for c in request.calls],
        [TeamMember(**m.model_dump()) for m in request.team_members],
        member_filter=request.member_filter,
    )
    return {"summary": summary.to_dict() if summary else None}


@router.post("/call-scoring/canonicalize")
async def canonicalize_labels(request: CanonicalizeRequest):
    """Canonical key and display label for each posted label, in input order."""
    index = ChecklistLabelIndex(request.labels)
    items = []
    for label in request.labels:
        key = canonicalize(label)
        items.append({"label": label, "key": key, "display_label": index.display_label(key)})
    return {"items": items, "keys": index.keys()}


@router.get("/agencies/{agency_id}/call-scoring/summary", dependencies=[Depends(bind_agency_context)])
async def agency_call_scoring_summary(
    agency_id: str,
    member_filter: Optional[str] = Query(default=None),
    service: CallScoringService = Depends(get_call_scoring_service),
):
    return {"summary": await service.summary(agency_id, member_filter)}
