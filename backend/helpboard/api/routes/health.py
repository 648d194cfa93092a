"""Health & Readiness — is the process up, and can it serve help posts.

Invariants:
    - GET /health/ answers 200 whenever the process runs
    - GET /health/ready answers 200 only when the database answers AND the
      help_posts table is queryable; otherwise 503 naming the first failed check

Design Decisions:
    - db_manager read at call time: it is created by the lifespan after import
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

import helpboard.infrastructure.database as database
from helpboard.config import get_settings

router = APIRouter(prefix="/api/v1/health", tags=["health"])

SERVICE = "helpboard-api"

# check name -> reason reported when it fails
_READINESS_REASONS = {
    "database": "database_unavailable",
    "help_posts": "help_posts_table_missing",
}


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    settings = get_settings()
    return {
        "status": "healthy",
        "service": SERVICE,
        "store_max_attempts": settings.store_max_attempts,
    }


@router.get("/ready")
async def readiness_check():
    manager = database.db_manager
    checks = await manager.readiness() if manager else dict.fromkeys(_READINESS_REASONS, False)
    failed = [name for name in _READINESS_REASONS if not checks[name]]
    if failed:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": _READINESS_REASONS[failed[0]],
                "checks": checks,
            },
        )
    return {"status": "ready", "checks": checks}
