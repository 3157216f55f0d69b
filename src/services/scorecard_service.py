"""Scorecard Service - validated writes of scorecard rules."""

from typing import Any, Dict, Optional

from validation.scorecard import ScorecardRules, ValidationResult, validate_scorecard_rules
from .backend_client import BackendClient
from .logging_config import get_logger

logger = get_logger(__name__)


class ScorecardValidationError(Exception):
    """Rules failed validation; nothing was written."""

    def __init__(self, result: ValidationResult):
        self.result = result
        super().__init__("; ".join(result.errors))


class ScorecardService:

    def __init__(self, client: Optional[BackendClient] = None):
        self._client = client or BackendClient()

    async def save_rules(self, agency_id: str, rules: ScorecardRules) -> Dict[str, Any]:
        """
        Validate, then upsert on (agency_id, role).

        Raises:
            ScorecardValidationError: If any rule fails validation
        """
        result = validate_scorecard_rules(rules)
        if not result.valid:
            logger.info(f"Rejected scorecard rules for agency {agency_id}: {result.errors}")
            raise ScorecardValidationError(result)

        rows = await self._client.upsert("scorecard_rules", rules.to_row(agency_id), on_conflict="agency_id,role")
        return rows[0] if rows else rules.to_row(agency_id)
