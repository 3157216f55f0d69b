"""
Services Module - backend access and application services.

Infrastructure:
- BackendClient: PostgREST and edge-function access over httpx
- Logging configuration

Application services (fetch agency records, delegate to the pure modules):
- GoalService, CallScoringService, CancelAuditService,
  OnboardingService, ScorecardService
"""

from .backend_client import BackendClient, BackendError
from .call_scoring_service import CallScoringService
from .cancel_audit_service import CancelAuditService
from .goal_service import GoalService
from .onboarding_service import OnboardingService
from .scorecard_service import ScorecardService, ScorecardValidationError

__all__ = [
    "BackendClient",
    "BackendError",
    "CallScoringService",
    "CancelAuditService",
    "GoalService",
    "OnboardingService",
    "ScorecardService",
    "ScorecardValidationError",
]
