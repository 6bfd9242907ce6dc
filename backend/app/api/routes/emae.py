"""EMAE Routes: monthly activity estimator, general level and by sector.

Invariants:
    - Variations are computed over a lookback of 13 months before the requested window,
      so the first rows of a filtered range still get monthly and yearly changes
    - sector GENERAL reads the emae table; any other sector reads emae_by_activity
"""

import logging
from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.response_helpers import (
    CACHE_DATA, cached_json, csv_response, optional_date,
)
from app.core.domain_types import ExportFormat
from app.core.emae_parser import EMAE_SECTORS, GENERAL_SECTOR
from app.core.errors import InvalidParameterError, NoDataError
from app.core.periods import today_in_argentina, year_month_filter
from app.core.seasonal import (
    MOVING_AVERAGE, RATIO_TO_MOVING_AVERAGE, X13, deseasonalize, trend_cycle,
)
from app.core.variations import attach_monthly_variations, shift_months
from app.infrastructure.database import get_db
from app.models.emae import Emae, EmaeByActivity

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/emae", tags=["emae"])

CACHE_EMAE_LATEST = (300, 3600)
SEASONAL_METHODS = (MOVING_AVERAGE, RATIO_TO_MOVING_AVERAGE, X13)
LOOKBACK_MONTHS = 13


def resolve_sector(sector: str | None) -> str:
    """Sector code from a code or a (partial) sector name; GENERAL by default."""
    if not sector:
        return GENERAL_SECTOR[0]
    wanted = sector.strip()
    if wanted.upper() in (GENERAL_SECTOR[0], GENERAL_SECTOR[1].upper()):
        return GENERAL_SECTOR[0]
    if wanted.upper() in EMAE_SECTORS:
        return wanted.upper()
    for code, name in EMAE_SECTORS.items():
        if wanted.lower() in name.lower():
            return code
    raise InvalidParameterError(f"Sector desconocido: {sector}", "sector")


def _general_row(r: Emae) -> dict:
    return {
        "date": r.date,
        "sector": GENERAL_SECTOR[1],
        "sector_code": GENERAL_SECTOR[0],
        "original_value": r.original_value,
        "seasonally_adjusted_value": r.seasonally_adjusted_value,
        "trend_cycle_value": r.cycle_trend_value,
    }


def _activity_row(r: EmaeByActivity) -> dict:
    return {
        "date": r.date,
        "sector": r.economy_sector,
        "sector_code": r.economy_sector_code,
        "original_value": r.original_value,
        "seasonally_adjusted_value": None,
        "trend_cycle_value": None,
    }


async def load_emae_rows(
    db: AsyncSession,
    sector_code: str,
    by_activity: bool,
    start: date | None = None,
    end: date | None = None,
) -> list[dict]:
    """Ascending rows for the sector (or every activity), with a variation lookback."""
    lookback = shift_months(start, -LOOKBACK_MONTHS) if start else None
    if sector_code == GENERAL_SECTOR[0] and not by_activity:
        query = select(Emae).order_by(Emae.date)
        if lookback:
            query = query.where(Emae.date >= lookback)
        if end:
            query = query.where(Emae.date <= end)
        return [_general_row(r) for r in (await db.execute(query)).scalars()]

    query = select(EmaeByActivity).order_by(EmaeByActivity.date, EmaeByActivity.economy_sector_code)
    if sector_code != GENERAL_SECTOR[0]:
        query = query.where(EmaeByActivity.economy_sector_code == sector_code)
    if lookback:
        query = query.where(EmaeByActivity.date >= lookback)
    if end:
        query = query.where(EmaeByActivity.date <= end)
    return [_activity_row(r) for r in (await db.execute(query)).scalars()]


@router.get("")
async def list_emae(
    start_date: str | None = None,
    end_date: str | None = None,
    month: int | None = None,
    year: int | None = None,
    format: ExportFormat = ExportFormat.JSON,
    sector: str | None = None,
    sector_code: str | None = None,
    include_variations: bool = True,
    by_activity: bool = False,
    db: AsyncSession = Depends(get_db),
):
    start = optional_date(start_date, "start_date")
    end = optional_date(end_date, "end_date")
    window = year_month_filter(month, year, today_in_argentina())
    if window:
        start, end = window
    code = resolve_sector(sector_code or sector)

    rows = await load_emae_rows(db, code, by_activity, start, end)
    if include_variations:
        rows = attach_monthly_variations(rows, "original_value", ("sector_code",))
    if start:
        rows = [r for r in rows if r["date"] >= start]
    rows.sort(key=lambda r: (r["date"], r["sector_code"]))

    if format == ExportFormat.CSV:
        return csv_response(rows, "emae.csv")
    return cached_json({
        "data": rows,
        "metadata": {
            "count": len(rows),
            "sector_code": code,
            "by_activity": by_activity,
            "filtered_by": {
                "start_date": start.isoformat() if start else None,
                "end_date": end.isoformat() if end else None,
                "month": month,
                "year": year,
            },
        },
    }, CACHE_DATA)


@router.get("/latest")
async def latest_emae(
    sector_code: str | None = None,
    by_activity: bool = False,
    db: AsyncSession = Depends(get_db),
):
    code = resolve_sector(sector_code)
    rows = attach_monthly_variations(
        await load_emae_rows(db, code, by_activity), "original_value", ("sector_code",),
    )
    if not rows:
        raise NoDataError("No hay datos de EMAE disponibles")
    last_date = max(r["date"] for r in rows)
    latest = [r for r in rows if r["date"] == last_date]
    if by_activity and code == GENERAL_SECTOR[0]:
        return cached_json({"date": last_date, "data": latest}, CACHE_EMAE_LATEST)
    return cached_json(latest[0], CACHE_EMAE_LATEST)


@router.get("/sectors")
async def emae_sectors(db: AsyncSession = Depends(get_db)):
    stored = (await db.execute(
        select(EmaeByActivity.economy_sector_code, EmaeByActivity.economy_sector)
        .distinct()
        .order_by(EmaeByActivity.economy_sector_code),
    )).all()
    names = dict(EMAE_SECTORS)
    names.update({code: name for code, name in stored})
    sectors = [{"code": GENERAL_SECTOR[0], "name": GENERAL_SECTOR[1]}]
    sectors.extend({"code": code, "name": name} for code, name in sorted(names.items()))
    return cached_json({"data": sectors, "count": len(sectors)}, CACHE_DATA)


@router.get("/metadata")
async def emae_metadata(db: AsyncSession = Depends(get_db)):
    first, last, count = (await db.execute(
        select(func.min(Emae.date), func.max(Emae.date), func.count(Emae.id)),
    )).one()
    activity_count = (await db.execute(select(func.count(EmaeByActivity.id)))).scalar_one()
    return cached_json({
        "date_range": {"first_date": first, "last_date": last},
        "total_records": count,
        "activity_records": activity_count,
        "sectors": [{"code": c, "name": n} for c, n in EMAE_SECTORS.items()],
        "seasonal_methods": list(SEASONAL_METHODS),
    }, CACHE_DATA)


@router.get("/seasonal")
async def emae_seasonal(
    method: str = MOVING_AVERAGE,
    sector_code: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    """Seasonally adjusted and Hodrick-Prescott trend series from the stored originals."""
    if method not in SEASONAL_METHODS:
        raise InvalidParameterError(
            f"Método inválido. Opciones: {', '.join(SEASONAL_METHODS)}", "method",
        )
    code = resolve_sector(sector_code)
    rows = [r for r in await load_emae_rows(db, code, False) if r["original_value"] is not None]
    if not rows:
        raise NoDataError("No hay datos de EMAE disponibles")

    adjusted = deseasonalize(
        [{"date": r["date"], "value": r["original_value"]} for r in rows], method,
    )
    trend = trend_cycle([p["original_value"] for p in adjusted])
    data = [
        {**p, "hp_trend_value": t, "sector_code": code}
        for p, t in zip(adjusted, trend)
    ]
    return cached_json({
        "data": data,
        "metadata": {
            "method": method,
            "fallback": method == X13,
            "sector_code": code,
            "count": len(data),
        },
    }, CACHE_DATA)
