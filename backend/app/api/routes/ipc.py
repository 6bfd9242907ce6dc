"""IPC Routes: consumer price index by component and region."""

import logging
from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.response_helpers import (
    CACHE_DATA, CACHE_LATEST, cached_json, csv_response, optional_date,
)
from app.core.domain_types import ExportFormat
from app.core.errors import InvalidParameterError, NoDataError
from app.core.ipc_parser import normalize_region
from app.core.periods import today_in_argentina, year_month_filter
from app.core.variations import attach_monthly_variations, shift_months
from app.infrastructure.database import get_db
from app.models.ipc import Ipc

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/ipc", tags=["ipc"])

COMPONENT_TYPES = ("GENERAL", "RUBRO", "BYS", "CATEGORIA")
LOOKBACK_MONTHS = 13


def _row(r: Ipc) -> dict:
    return {
        "date": r.date,
        "category": r.component,
        "category_code": r.component_code,
        "category_type": r.component_type,
        "index_value": r.index_value,
        "region": r.region,
    }


async def load_ipc_rows(
    db: AsyncSession,
    region: str,
    category: str | None,
    component_type: str | None,
    start: date | None = None,
    end: date | None = None,
) -> list[dict]:
    """Ascending rows; the lookback before start feeds yearly and accumulated changes."""
    query = select(Ipc).where(Ipc.region == region)
    if component_type:
        query = query.where(Ipc.component_type == component_type)
    if category:
        query = query.where(or_(
            Ipc.component_code == category.upper(),
            Ipc.component.ilike(f"%{category}%"),
        ))
    if start:
        query = query.where(Ipc.date >= shift_months(start, -LOOKBACK_MONTHS))
    if end:
        query = query.where(Ipc.date <= end)
    query = query.order_by(Ipc.date, Ipc.component_code)
    return [_row(r) for r in (await db.execute(query)).scalars()]


def _component_type(raw: str | None) -> str | None:
    if raw is None:
        return None
    value = raw.upper()
    if value not in COMPONENT_TYPES:
        raise InvalidParameterError(
            f"component_type inválido. Opciones: {', '.join(COMPONENT_TYPES)}",
            "component_type",
        )
    return value


@router.get("")
async def list_ipc(
    start_date: str | None = None,
    end_date: str | None = None,
    month: int | None = None,
    year: int | None = None,
    format: ExportFormat = ExportFormat.JSON,
    component_type: str | None = None,
    category: str | None = None,
    region: str = "nacional",
    include_variations: bool = True,
    db: AsyncSession = Depends(get_db),
):
    start = optional_date(start_date, "start_date")
    end = optional_date(end_date, "end_date")
    window = year_month_filter(month, year, today_in_argentina())
    if window:
        start, end = window
    ctype = _component_type(component_type)
    if category is None and ctype is None:
        category = "GENERAL"
    region_name = normalize_region(region)

    rows = await load_ipc_rows(db, region_name, category, ctype, start, end)
    if include_variations:
        rows = attach_monthly_variations(
            rows, "index_value", ("category_code",), accumulated=True,
        )
    if start:
        rows = [r for r in rows if r["date"] >= start]

    if format == ExportFormat.CSV:
        return csv_response(rows, "ipc.csv")
    return cached_json({
        "data": rows,
        "metadata": {
            "count": len(rows),
            "filtered_by": {
                "start_date": start.isoformat() if start else None,
                "end_date": end.isoformat() if end else None,
                "category": category,
                "component_type": ctype,
                "region": region_name,
            },
        },
    }, CACHE_DATA)


@router.get("/latest")
async def latest_ipc(
    category: str = "GENERAL",
    region: str = "nacional",
    db: AsyncSession = Depends(get_db),
):
    region_name = normalize_region(region)
    rows = attach_monthly_variations(
        await load_ipc_rows(db, region_name, category, None),
        "index_value", ("category_code",), accumulated=True,
    )
    if not rows:
        raise NoDataError("No hay datos de IPC disponibles")
    code = rows[-1]["category_code"]
    series = [r for r in rows if r["category_code"] == code]
    latest = dict(series[-1])
    previous = series[-2] if len(series) > 1 else None
    latest["monthly_change_variation"] = (
        round(latest["monthly_pct_change"] - previous["monthly_pct_change"], 2)
        if previous is not None
        and latest["monthly_pct_change"] is not None
        and previous["monthly_pct_change"] is not None
        else None
    )
    return cached_json(latest, CACHE_LATEST)


@router.get("/metadata")
async def ipc_metadata(db: AsyncSession = Depends(get_db)):
    components = (await db.execute(
        select(Ipc.component_code, Ipc.component, Ipc.component_type)
        .distinct()
        .order_by(Ipc.component_type, Ipc.component_code),
    )).all()
    regions = (await db.execute(
        select(Ipc.region).distinct().order_by(Ipc.region),
    )).scalars().all()
    first, last, count = (await db.execute(
        select(func.min(Ipc.date), func.max(Ipc.date), func.count(Ipc.id)),
    )).one()
    return cached_json({
        "components": [
            {"code": code, "name": name, "type": ctype} for code, name, ctype in components
        ],
        "component_types": list(COMPONENT_TYPES),
        "regions": list(regions),
        "date_range": {"first_date": first, "last_date": last},
        "total_records": count,
    }, CACHE_DATA)
