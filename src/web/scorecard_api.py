"""
Scorecard Rules API

Validation runs synchronously before anything is written; a failed check
answers 400 and the backend is never called.
"""

from dataclasses import asdict
from typing import Dict, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from services.scorecard_service import ScorecardService, ScorecardValidationError
from validation.scorecard import ScorecardRole, ScorecardRules, ValidationResult, validate_scorecard_rules
from web.dependencies import bind_agency_context, get_scorecard_service
from web.errors import APIError, ErrorCode

router = APIRouter(prefix="/api/v1", tags=["Scorecards"])


class ScorecardRulesRequest(BaseModel):
    role: ScorecardRole = ScorecardRole.SALES
    selected_metrics: List[str] = Field(default_factory=list)
    n_required: int = 2
    weights: Dict[str, float] = Field(default_factory=dict, description="Metric -> weight; must total 100")
    counted_days: Dict[str, bool] = Field(default_factory=dict)
    count_weekend_if_submitted: bool = True
    ring_metrics: List[str] = Field(default_factory=list)

    def to_rules(self) -> ScorecardRules:
        data = self.model_dump()
        if not data["ring_metrics"]:
            data["ring_metrics"] = list(data["selected_metrics"])
        return ScorecardRules(**data)


def _validation_error(result: ValidationResult) -> APIError:
    return APIError(
        ErrorCode.VALIDATION_ERROR,
        "; ".join(result.errors),
        field_errors=[
            {"field": m.field or "body", "message": m.message, "code": m.severity.value}
            for m in result.messages
        ],
    )


@router.post("/scorecards/validate")
async def validate_rules(request: ScorecardRulesRequest):
    result = validate_scorecard_rules(request.to_rules())
    return {
        "valid": result.valid,
        "messages": [asdict(m) for m in result.messages],
    }


@router.put("/agencies/{agency_id}/scorecard-rules", dependencies=[Depends(bind_agency_context)])
async def save_rules(
    agency_id: str,
    request: ScorecardRulesRequest,
    service: ScorecardService = Depends(get_scorecard_service),
):
    try:
        saved = await service.save_rules(agency_id, request.to_rules())
    except ScorecardValidationError as e:
        raise _validation_error(e.result) from e
    return {"saved": True, "rules": saved}
