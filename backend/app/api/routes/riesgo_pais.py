"""Riesgo País Routes: EMBI daily closings, period statistics and variations.

Invariants:
    - Readings are reduced to one closing per Argentina calendar day before anything else
    - A short lookback before the window gives the first closing its daily change
"""

import logging
from datetime import date, timedelta

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.response_helpers import (
    CACHE_LATEST, cached_json, csv_response, optional_date,
)
from app.core.domain_types import ExportFormat, RiskPeriod, SortOrder
from app.core.errors import NoDataError
from app.core.periods import local_day_bounds, months_back, today_in_argentina
from app.core.risk_stats import (
    daily_closings, describe_range, reference_in_window, risk_period_range, risk_stats,
)
from app.core.variations import pct_change
from app.infrastructure.database import get_db
from app.models.embi_risk import EmbiRisk

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/riesgo-pais", tags=["riesgo-pais"])

CACHE_RISK = (300, 600)
LOOKBACK_DAYS = 10


async def load_closings(
    db: AsyncSession, start: date | None, end: date | None,
) -> list[dict]:
    """Ascending daily closings between start and end (inclusive, local days)."""
    query = select(EmbiRisk.closing_date, EmbiRisk.value)
    if start:
        query = query.where(
            EmbiRisk.closing_date >= local_day_bounds(start - timedelta(days=LOOKBACK_DAYS))[0],
        )
    if end:
        query = query.where(EmbiRisk.closing_date < local_day_bounds(end)[1])
    readings = [
        {"closing_date": d, "value": v} for d, v in (await db.execute(query)).all()
    ]
    closings = daily_closings(readings)
    if start:
        closings = [c for c in closings if c["closing_date"] >= start]
    return closings


async def _latest_closing(db: AsyncSession) -> list[dict]:
    newest = (await db.execute(
        select(EmbiRisk.closing_date).order_by(EmbiRisk.closing_date.desc()).limit(1),
    )).scalar_one_or_none()
    if newest is None:
        return []
    day = today_in_argentina(newest)
    return (await load_closings(db, day, day))[-1:]


@router.get("")
async def list_riesgo_pais(
    type: RiskPeriod = RiskPeriod.LAST_30_DAYS,
    date_from: str | None = None,
    date_to: str | None = None,
    limit: int = Query(100, ge=1, le=1000),
    order: SortOrder = SortOrder.DESC,
    format: ExportFormat = ExportFormat.JSON,
    db: AsyncSession = Depends(get_db),
):
    start, end = risk_period_range(
        type, today_in_argentina(),
        optional_date(date_from, "date_from"), optional_date(date_to, "date_to"),
    )
    if type == RiskPeriod.LATEST:
        closings = await _latest_closing(db)
    else:
        closings = await load_closings(db, start, end)

    newest_first = list(reversed(closings))
    stats = risk_stats(newest_first)
    data = newest_first[:limit]
    if order == SortOrder.ASC:
        data.reverse()

    if format == ExportFormat.CSV:
        return csv_response(data, "riesgo_pais.csv")
    return cached_json({
        "data": data,
        "stats": stats,
        "metadata": {
            "type": type.value,
            "range": describe_range(type, start, end),
            "count": len(data),
            "total_available": len(closings),
            "order": order.value,
            "limit": limit,
        },
    }, CACHE_RISK)


@router.get("/with-variations")
async def riesgo_pais_with_variations(db: AsyncSession = Depends(get_db)):
    """Latest closing with monthly and yearly variation against nearby reference closings."""
    latest = await _latest_closing(db)
    if not latest:
        raise NoDataError("No hay datos de riesgo país disponibles")
    current = latest[0]
    day = current["closing_date"]
    history = await load_closings(db, months_back(day, 12) - timedelta(days=7), day)
    month_ref = reference_in_window(history, months_back(day, 1))
    year_ref = reference_in_window(history, months_back(day, 12))

    def variation(ref: dict | None) -> dict | None:
        if ref is None:
            return None
        return {
            "reference_date": ref["closing_date"],
            "reference_value": ref["closing_value"],
            "absolute": round(current["closing_value"] - ref["closing_value"], 2),
            "percentage": pct_change(current["closing_value"], ref["closing_value"]),
        }

    return cached_json({
        "data": {
            **current,
            "monthly_variation": variation(month_ref),
            "yearly_variation": variation(year_ref),
        },
    }, CACHE_LATEST)
