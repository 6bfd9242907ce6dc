"""Admin Routes: historical backfills and CSV imports.

Invariants:
    - backfill-dollar is authorized with the cron secret; backfill-bcra and import-emae
      with ADMIN_SYNC_KEY
    - GET backfill-dollar only describes the endpoint and never writes
"""

import logging
from datetime import timedelta

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_providers, require_admin_auth, require_cron_auth
from app.core.domain_types import BcraIndex
from app.core.periods import today_in_argentina
from app.infrastructure.database import get_db
from app.infrastructure.providers import Providers
from app.schemas.admin import BackfillBcraRequest, BackfillDollarRequest, EmaeImportRequest
from app.services.bcra_updater import backfill_bcra_indices
from app.services.dollar_updater import backfill_dollar_rates
from app.services.emae_updater import import_emae_csv

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/admin", tags=["admin"])


@router.get("/backfill-dollar")
async def backfill_dollar_info():
    today = today_in_argentina()
    dates = [(today - timedelta(days=offset)).isoformat() for offset in range(30, 0, -1)]
    return {
        "info": "Endpoint de backfill para datos históricos del dólar",
        "usage": {
            "endpoint": "POST /api/v1/admin/backfill-dollar",
            "authorization": "Bearer [CRON_SECRET_KEY]",
            "parameters": {
                "days": "Número de días hacia atrás (default: 30, máximo: 365)",
                "dryRun": "true para simular sin insertar (default: false)",
            },
        },
        "example_dates_30_days": dates[:5] + ["...", dates[-1]],
        "total_dates_example": len(dates),
    }


@router.post("/backfill-dollar", dependencies=[Depends(require_cron_auth)])
async def backfill_dollar(
    body: BackfillDollarRequest | None = None,
    db: AsyncSession = Depends(get_db),
    providers: Providers = Depends(get_providers),
):
    body = body or BackfillDollarRequest()
    logger.info(f"Dollar backfill requested: days={body.days} dry_run={body.dry_run}")
    return await backfill_dollar_rates(
        db, providers.dolarapi, days=body.days, dry_run=body.dry_run,
    )


@router.post("/backfill-bcra", dependencies=[Depends(require_admin_auth)])
async def backfill_bcra(
    body: BackfillBcraRequest | None = None,
    db: AsyncSession = Depends(get_db),
    providers: Providers = Depends(get_providers),
):
    body = body or BackfillBcraRequest()
    indices = [BcraIndex(name.lower()) for name in body.indices]
    summary = await backfill_bcra_indices(
        db, providers.bcra, indices, body.date_from, body.date_to,
    )
    return {
        "success": True,
        "message": "Backfill BCRA completado",
        "results": summary,
    }


@router.post("/import-emae", dependencies=[Depends(require_admin_auth)])
async def import_emae(
    body: EmaeImportRequest,
    db: AsyncSession = Depends(get_db),
):
    result = await import_emae_csv(db, body.csv, body.kind, body.fill_adjusted)
    return {
        "success": True,
        "kind": body.kind,
        "inserted": result.inserted,
        "updated": result.updated,
        "processed": result.processed,
    }
