"""ArgenStats API — FastAPI entry point for the indicator, cron, admin and user routes.

Invariants:
    - Every router lives under /api/v1 and is registered here, in ROUTERS order
    - Data routes (dollar, emae, ipc, riesgo-pais, cer, uva, labor-market, poverty, calendar)
      pass through the access middleware; CORS wraps it so browsers see the rate-limit headers
    - The database manager exists only between lifespan startup and shutdown
    - Error handlers are registered last and cover every router

Design Decisions:
    - Provider clients are built per cron/admin request (get_providers); query routes never
      reach a provider, so nothing outbound is held open between cron runs
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.access_middleware import RATE_LIMIT_HEADERS, register_access_middleware
from app.api.error_handlers import register_error_handlers
from app.api.routes import (
    admin, bcra_indices, calendar, cron, dollar, emae, health, ipc,
    labor_market, poverty, riesgo_pais, user,
)
from app.config import get_settings
from app.infrastructure import database as db_module
from app.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)

ROUTERS = (
    health.router,
    dollar.router,
    emae.router,
    ipc.router,
    riesgo_pais.router,
    bcra_indices.cer_router,
    bcra_indices.uva_router,
    labor_market.router,
    poverty.router,
    calendar.router,
    cron.router,
    admin.router,
    user.router,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db_module.init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    logger.info(f"ArgenStats API {health.VERSION} started with {len(ROUTERS)} routers")
    try:
        yield
    finally:
        if db_module.db_manager is not None:
            await db_module.db_manager.dispose()
            db_module.db_manager = None
        logger.info("ArgenStats API stopped")


def create_app() -> FastAPI:
    settings = get_settings()
    application = FastAPI(
        title="ArgenStats API", version=health.VERSION, lifespan=lifespan,
    )
    register_access_middleware(application)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=list(RATE_LIMIT_HEADERS),
    )
    for router in ROUTERS:
        application.include_router(router)
    register_error_handlers(application)
    return application


app = create_app()
