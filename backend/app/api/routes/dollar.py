"""Dollar Routes: exchange rate history, latest quotes and metadata.

Invariants:
    - Date filters are Argentina calendar days, end_date inclusive
    - spread = (sell - buy) / buy * 100; variation_* compare with the previous quote of the
      same type inside the result set
"""

import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.response_helpers import (
    CACHE_DATA, CACHE_LATEST, cached_json, csv_response, iso, optional_date,
)
from app.core.dollar_rules import DOLLAR_DESCRIPTIONS, spread
from app.core.domain_types import DollarType, ExportFormat
from app.core.errors import InvalidParameterError, NoDataError
from app.core.periods import as_utc, local_day_bounds
from app.core.variations import pct_change
from app.infrastructure.database import get_db
from app.models.dollar_rate import DollarRate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/dollar", tags=["dollar"])

CACHE_HISTORY = (900, 1800)


def _parse_types(raw: str | None) -> list[str] | None:
    if not raw:
        return None
    types = [t.strip().upper() for t in raw.split(",") if t.strip()]
    valid = {t.value for t in DollarType}
    unknown = [t for t in types if t not in valid]
    if unknown:
        raise InvalidParameterError(
            f"Tipo de dólar inválido: {', '.join(unknown)}", "type",
        )
    return types


def _description(dollar_type: str) -> str:
    try:
        return DOLLAR_DESCRIPTIONS[DollarType(dollar_type)]
    except ValueError:
        return dollar_type


def _row(r: DollarRate) -> dict:
    return {
        "date": iso(as_utc(r.date)),
        "dollar_type": r.dollar_type,
        "buy_price": r.buy_price,
        "sell_price": r.sell_price,
        "spread": spread(r.buy_price, r.sell_price),
        "last_updated": iso(as_utc(r.created_at)),
    }


def attach_quote_variations(rows: list[dict]) -> list[dict]:
    """Rows ordered newest first; compares each with the next older row of its type."""
    older: dict[str, dict] = {}
    out = []
    for row in reversed(rows):
        prev = older.get(row["dollar_type"])
        out.append({
            **row,
            "variation_buy": pct_change(row["buy_price"], prev["buy_price"]) if prev else None,
            "variation_sell": pct_change(row["sell_price"], prev["sell_price"]) if prev else None,
        })
        older[row["dollar_type"]] = row
    out.reverse()
    return out


@router.get("")
async def list_dollar_rates(
    start_date: str | None = None,
    end_date: str | None = None,
    type: str | None = None,
    format: ExportFormat = ExportFormat.JSON,
    db: AsyncSession = Depends(get_db),
):
    start = optional_date(start_date, "start_date")
    end = optional_date(end_date, "end_date")
    types = _parse_types(type)

    query = select(DollarRate)
    if start:
        query = query.where(DollarRate.date >= local_day_bounds(start)[0])
    if end:
        query = query.where(DollarRate.date < local_day_bounds(end)[1])
    if types:
        query = query.where(DollarRate.dollar_type.in_(types))
    query = query.order_by(DollarRate.date.desc(), DollarRate.dollar_type)

    rows = attach_quote_variations([_row(r) for r in (await db.execute(query)).scalars()])
    if format == ExportFormat.CSV:
        return csv_response(rows, "dollar_rates.csv")
    return cached_json({
        "data": rows,
        "metadata": {
            "count": len(rows),
            "filtered_by": {
                "start_date": start_date,
                "end_date": end_date,
                "dollar_type": ",".join(types) if types else None,
            },
        },
    }, CACHE_HISTORY)


@router.get("/latest")
async def latest_dollar_rates(
    type: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    types = _parse_types(type)
    if types and len(types) == 1:
        record = (await db.execute(
            select(DollarRate)
            .where(DollarRate.dollar_type == types[0])
            .order_by(DollarRate.date.desc())
            .limit(1),
        )).scalar_one_or_none()
        if record is None:
            raise NoDataError(f"No hay datos para el dólar {types[0]}")
        return cached_json(_row(record), CACHE_LATEST)

    latest_dates = (
        select(DollarRate.dollar_type, func.max(DollarRate.date).label("max_date"))
        .group_by(DollarRate.dollar_type)
        .subquery()
    )
    query = select(DollarRate).join(
        latest_dates,
        (DollarRate.dollar_type == latest_dates.c.dollar_type)
        & (DollarRate.date == latest_dates.c.max_date),
    ).order_by(DollarRate.dollar_type)
    if types:
        query = query.where(DollarRate.dollar_type.in_(types))
    rows = [_row(r) for r in (await db.execute(query)).scalars()]
    if not rows:
        raise NoDataError("No hay cotizaciones disponibles")
    return cached_json(rows, CACHE_LATEST)


@router.get("/metadata")
async def dollar_metadata(db: AsyncSession = Depends(get_db)):
    stats = (await db.execute(
        select(
            DollarRate.dollar_type,
            func.count(DollarRate.id),
            func.min(DollarRate.date),
            func.max(DollarRate.date),
        ).group_by(DollarRate.dollar_type),
    )).all()
    types = []
    first_all = last_all = None
    for dollar_type, count, first, last in stats:
        first, last = as_utc(first), as_utc(last)
        first_all = first if first_all is None else min(first_all, first)
        last_all = last if last_all is None else max(last_all, last)
        types.append({
            "type": dollar_type,
            "description": _description(dollar_type),
            "count": count,
            "first_date": iso(first),
            "last_date": iso(last),
        })
    date_range = None
    if first_all is not None:
        date_range = {
            "first_date": iso(first_all),
            "last_date": iso(last_all),
            "days_count": (last_all.date() - first_all.date()) // timedelta(days=1) + 1,
        }
    return cached_json({
        "dollar_types": types,
        "date_range": date_range,
        "total_records": sum(t["count"] for t in types),
        "endpoints": {
            "history": "/api/v1/dollar",
            "latest": "/api/v1/dollar/latest",
            "metadata": "/api/v1/dollar/metadata",
        },
        "available_types": [
            {"type": t.value, "description": DOLLAR_DESCRIPTIONS[t]} for t in DollarType
        ],
    }, CACHE_DATA)
