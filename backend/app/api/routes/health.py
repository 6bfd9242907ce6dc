"""Health Probes — liveness for the process, readiness for the indicator database.

Invariants:
    - GET /health/ answers 200 whenever the process serves requests
    - GET /health/ready answers 503 with a reason when the database is not initialized or
      does not answer a trivial query
    - Neither probe goes through the access middleware or touches a data provider
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from app.infrastructure import database as db_module

SERVICE = "argenstats-api"
VERSION = "1.0.0"

router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def liveness():
    return {"status": "healthy", "service": SERVICE, "version": VERSION}


@router.get("/ready")
async def readiness():
    manager = db_module.db_manager
    if manager is None or not await manager.health_check():
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "database_unavailable"},
        )
    return {"status": "ready", "checks": {"database": "healthy"}}
