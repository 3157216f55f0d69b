"""
FastAPI dependency injection.

Usage in endpoints:
    @router.get("/agencies/{agency_id}/cancel-audit/hero-stats")
    async def hero(
        agency_id: str,
        service: CancelAuditService = Depends(get_cancel_audit_service),
    ):
        ...

Tests override ``get_backend_client`` (to inject an httpx MockTransport)
and ``get_today`` (to pin the date).
"""

from datetime import date
from typing import Optional

from fastapi import Depends, Header

from config.settings import Settings, get_settings
from services.backend_client import BackendClient
from services.call_scoring_service import CallScoringService
from services.cancel_audit_service import CancelAuditService
from services.goal_service import GoalService
from services.logging_config import agency_id_var
from services.onboarding_service import OnboardingService
from services.scorecard_service import ScorecardService


def get_today() -> date:
    return date.today()


def get_app_settings() -> Settings:
    return get_settings()


def bearer_token(authorization: Optional[str] = Header(default=None)) -> Optional[str]:
    """Caller's JWT, forwarded so the backend applies its row-level policies."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


def get_backend_client(access_token: Optional[str] = Depends(bearer_token)) -> BackendClient:
    return BackendClient(access_token=access_token)


def get_goal_service(client: BackendClient = Depends(get_backend_client)) -> GoalService:
    return GoalService(client)


def get_call_scoring_service(client: BackendClient = Depends(get_backend_client)) -> CallScoringService:
    return CallScoringService(client)


def get_cancel_audit_service(client: BackendClient = Depends(get_backend_client)) -> CancelAuditService:
    return CancelAuditService(client)


def get_onboarding_service(client: BackendClient = Depends(get_backend_client)) -> OnboardingService:
    return OnboardingService(client)


def get_scorecard_service(client: BackendClient = Depends(get_backend_client)) -> ScorecardService:
    return ScorecardService(client)


async def bind_agency_context(agency_id: str) -> str:
    """Tag every log line of an agency-scoped request with the agency."""
    agency_id_var.set(agency_id)
    return agency_id
