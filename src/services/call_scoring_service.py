"""Call Scoring Service - dashboard summary over an agency's analyzed calls."""

from typing import Any, Dict, Optional

from analytics.call_scoring import CallScoringRecord, TeamMember, summarize_calls
from .backend_client import BackendClient
from .logging_config import get_logger, log_performance

logger = get_logger(__name__)

CALL_COLUMNS = "id,team_member_id,potential_rank,overall_score,skill_scores,discovery_wins,analyzed_at"


class CallScoringService:

    def __init__(self, client: Optional[BackendClient] = None):
        self._client = client or BackendClient()

    @log_performance("call_scoring_summary")
    async def summary(self, agency_id: str, member_filter: Optional[str] = None) -> Optional[Dict[str, Any]]:
        rows = await self._client.select(
            "agency_calls",
            CALL_COLUMNS,
            {"agency_id": agency_id},
            order="analyzed_at.desc",
        )
        members = await self._client.select("team_members", "id,name", {"agency_id": agency_id})

        summary = summarize_calls(
            [CallScoringRecord.from_dict(r) for r in rows],
            [TeamMember(id=str(m["id"]), name=m.get("name") or "") for m in members],
            member_filter=member_filter,
        )
        return summary.to_dict() if summary else None
