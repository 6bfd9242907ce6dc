"""Access Middleware: API-key check, rate-limit headers and request tracking for data routes.

Invariants:
    - Applies only to the public data prefixes; health, cron, admin and user routes pass through
    - Every response on a data route carries X-RateLimit-Limit/Remaining/Reset
    - A failure inside the check lets the request through; a tracking failure never
      changes the response

Design Decisions:
    - Middleware over a per-route dependency: headers must also reach CSV and error responses
    - Sessions come from db_module.db_manager at call time so tests can swap the manager
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.core.errors import ApiKeyError, ArgenStatsError
from app.core.periods import next_midnight, to_local
from app.core.request_classifier import DEFAULT_ALLOWED_DOMAINS, classify
from app.infrastructure import database as db_module
from app.services.access import AccessGrant, check_access, unlimited
from app.services.request_tracker import track_request

logger = logging.getLogger(__name__)

PROTECTED_PREFIXES = tuple(
    f"/api/v1/{name}" for name in (
        "dollar", "emae", "ipc", "riesgo-pais", "cer", "uva",
        "labor-market", "poverty", "calendar",
    )
)

RATE_LIMIT_HEADERS = ("X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset")


def is_protected(path: str) -> bool:
    return path.startswith(PROTECTED_PREFIXES)


def register_access_middleware(app: FastAPI) -> None:

    @app.middleware("http")
    async def access_control(request: Request, call_next):
        if not is_protected(request.url.path):
            return await call_next(request)

        started = time.perf_counter()
        settings = get_settings()
        now = datetime.now(timezone.utc)
        request_class = classify(
            request.headers, (*DEFAULT_ALLOWED_DOMAINS, *settings.allowed_internal_hosts),
        )
        grant = await _grant_for(request, request_class, settings.rate_limit_virtual_limit, now)

        if isinstance(grant, ApiKeyError):
            response = JSONResponse(status_code=grant.http_status, content=grant.to_response())
            response.headers.update(
                AccessGrant(
                    limit=settings.rate_limit_virtual_limit, remaining=0,
                    reset=next_midnight(to_local(now)),
                ).headers(),
            )
            await _track(request, request_class, response.status_code, started, None)
            return response

        response = await call_next(request)
        response.headers.update(grant.headers())
        await _track(request, request_class, response.status_code, started, grant.user_id)
        return response


async def _grant_for(request: Request, request_class, limit: int, now: datetime):
    """AccessGrant, or the ApiKeyError to answer with."""
    if db_module.db_manager is None:
        return unlimited(now, limit)
    try:
        async with db_module.db_manager.session() as db:
            return await check_access(
                db, request_class, request.headers.get("x-api-key"), limit, now,
            )
    except ApiKeyError as e:
        return e
    except (ArgenStatsError, OSError) as e:
        logger.error(
            f"Access check failed, allowing request: {e}",
            extra={"error_code": getattr(e, "code", "DATABASE_ERROR"), "path": request.url.path},
        )
        return unlimited(now, limit)


async def _track(request: Request, request_class, status_code: int, started: float, user_id) -> None:
    if db_module.db_manager is None:
        return
    try:
        async with db_module.db_manager.session() as db:
            await track_request(
                db,
                path=request.url.path,
                method=request.method,
                status_code=status_code,
                response_time_ms=int((time.perf_counter() - started) * 1000),
                headers=request.headers,
                query_params=request.query_params,
                request_class=request_class,
                user_id=user_id,
            )
    except (ArgenStatsError, OSError) as e:
        logger.error(
            f"Request tracking failed: {e}",
            extra={"error_code": getattr(e, "code", "DATABASE_ERROR"), "path": request.url.path},
        )
