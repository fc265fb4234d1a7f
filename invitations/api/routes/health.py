"""Health & Readiness — liveness, database readiness and invitation runtime state.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 if the database is unreachable or the runtime
      has not been built yet
    - Cache state never affects readiness: the cache fails open, so a failed ping
      is reported as "degraded" with status still "ready"
    - Readiness lists the registered invitation components the runtime serves
"""

import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

import invitations.infrastructure.database as database

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


def _not_ready(reason: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "not_ready", "reason": reason},
    )


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    return {"status": "healthy", "service": "invitations-api"}


@router.get("/ready")
async def readiness_check(request: Request):
    manager = database.db_manager
    if not (manager and await manager.health_check()):
        return _not_ready("database_unavailable")

    runtime = getattr(request.app.state, "runtime", None)
    if runtime is None:
        return _not_ready("runtime_not_started")

    cache_ok = await runtime.cache.ping()
    if not cache_ok:
        logger.warning("Readiness: invitation cache unreachable, serving uncached")
    return {
        "status": "ready",
        "checks": {
            "database": "healthy",
            "cache": "healthy" if cache_ok else "degraded",
        },
        "components": runtime.registry.registered_components(),
    }
