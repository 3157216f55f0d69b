"""
FastAPI application for the agency metrics service.

Routes (all JSON unless noted):
- GET  /health
- POST /api/v1/goals/progress, /api/v1/goals/promo-status
- GET  /api/v1/agencies/{agency_id}/goals/progress
- POST /api/v1/roi/vendor, /api/v1/roi/marketing, /api/v1/roi/vendor/report.csv (CSV)
- POST /api/v1/call-scoring/summary, /api/v1/call-scoring/canonicalize
- GET  /api/v1/agencies/{agency_id}/call-scoring/summary
- GET  /api/v1/agencies/{agency_id}/cancel-audit/hero-stats, weekly-stats,
       activity-summary, export.csv (CSV)
- POST /api/v1/onboarding/schedule
- GET  /api/v1/onboarding/sequences/{sequence_id}/preview
- GET  /api/v1/agencies/{agency_id}/onboarding/calendar
- POST /api/v1/scorecards/validate
- PUT  /api/v1/agencies/{agency_id}/scorecard-rules
- POST /api/v1/winback/parse (multipart .xlsx upload)
"""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import Settings, get_settings, validate_startup_config
from services.logging_config import configure_logging
from web.call_scoring_api import router as call_scoring_router
from web.cancel_audit_api import router as cancel_audit_router
from web.errors import RequestIDMiddleware, register_exception_handlers
from web.goals_api import router as goals_router
from web.onboarding_api import router as onboarding_router
from web.roi_api import router as roi_router
from web.scorecard_api import router as scorecard_router
from web.winback_api import router as winback_router

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.

    In production, startup aborts when the backend is not configured.
    """
    settings = settings or get_settings()
    configure_logging(level=settings.log_level, json_output=settings.log_json or settings.is_production)
    validate_startup_config(settings, exit_on_failure=settings.is_production)

    app = FastAPI(title=settings.name, version=settings.version, debug=settings.debug)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Content-Disposition"],
    )
    app.add_middleware(RequestIDMiddleware)
    register_exception_handlers(app)

    app.include_router(goals_router)
    app.include_router(roi_router)
    app.include_router(call_scoring_router)
    app.include_router(cancel_audit_router)
    app.include_router(onboarding_router)
    app.include_router(scorecard_router)
    app.include_router(winback_router)

    @app.get("/health", tags=["Health"])
    async def health():
        return {
            "status": "ok",
            "service": settings.name,
            "version": settings.version,
            "environment": settings.environment,
        }

    logger.info(f"{settings.name} {settings.version} started ({settings.environment})")
    return app


app = create_app()
