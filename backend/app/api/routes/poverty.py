"""Poverty Routes: semester poverty and indigence rates from the EPH report."""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.response_helpers import cached_json, csv_response, optional_date
from app.core.domain_types import ExportFormat, PovertyDataType
from app.core.errors import InvalidParameterError, NoDataError
from app.core.poverty_parser import NATIONAL_REGION, RATE_FIELDS
from app.infrastructure.database import get_db
from app.models.poverty import PovertyData

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/poverty", tags=["poverty"])

CACHE_POVERTY = (3600, 7200)
MAIN_CUADROS = ("Cuadro 1", "Cuadro 4.3", "Cuadro 4.4")
CSV_HEADERS = [
    "date", "period", "semester", "year", "data_type", "region",
    "poverty_rate_persons", "poverty_rate_households",
    "indigence_rate_persons", "indigence_rate_households",
]
INDICATOR_ALIASES = {
    "poverty_persons": "poverty_rate_persons",
    "poverty_households": "poverty_rate_households",
    "indigence_persons": "indigence_rate_persons",
    "indigence_households": "indigence_rate_households",
}


def resolve_indicator(indicator: str | None) -> str | None:
    if indicator is None:
        return None
    field = INDICATOR_ALIASES.get(indicator, indicator)
    if field not in RATE_FIELDS:
        raise InvalidParameterError(
            f"Indicador inválido. Use: {', '.join(RATE_FIELDS)}", "indicator",
        )
    return field


def _row(r: PovertyData) -> dict:
    return {
        "date": r.date,
        "period": r.period,
        "semester": r.semester,
        "year": r.year,
        "data_type": r.data_type,
        "region": r.region,
        "cuadro_source": r.cuadro_source,
        **{name: getattr(r, name) for name in RATE_FIELDS},
    }


@router.get("")
async def list_poverty(
    start_date: str | None = None,
    end_date: str | None = None,
    data_type: PovertyDataType | None = None,
    region: str | None = None,
    indicator: str | None = None,
    limit: int = Query(100, ge=1, le=1000),
    format: ExportFormat = ExportFormat.JSON,
    db: AsyncSession = Depends(get_db),
):
    start = optional_date(start_date, "start_date")
    end = optional_date(end_date, "end_date")
    field = resolve_indicator(indicator)

    query = select(PovertyData).order_by(PovertyData.date.desc(), PovertyData.region)
    if start:
        query = query.where(PovertyData.date >= start)
    if end:
        query = query.where(PovertyData.date <= end)
    if data_type:
        query = query.where(PovertyData.data_type == data_type.value)
    if region:
        query = query.where(PovertyData.region.ilike(f"%{region}%"))
    rows = [_row(r) for r in (await db.execute(query.limit(limit))).scalars()]
    if field:
        rows = [r for r in rows if r[field] is not None]

    if format == ExportFormat.CSV:
        return csv_response(rows, "poverty_data.csv", CSV_HEADERS)
    periods = sorted(r["period"] for r in rows)
    return cached_json({
        "data": rows,
        "metadata": {
            "count": len(rows),
            "filtered_by": {
                "start_date": start_date,
                "end_date": end_date,
                "data_type": data_type.value if data_type else None,
                "region": region,
                "indicator": indicator,
                "limit": limit,
            },
            "period_range": {"first": periods[0], "last": periods[-1]} if periods else None,
        },
    }, CACHE_POVERTY)


@router.get("/latest")
async def latest_poverty(
    region: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    if region:
        record = (await db.execute(
            select(PovertyData)
            .where(PovertyData.region == region)
            .order_by(PovertyData.date.desc())
            .limit(1),
        )).scalar_one_or_none()
        if record is None:
            raise NoDataError(f"No hay datos de pobreza para {region}")
        return cached_json({"data": _row(record)}, CACHE_POVERTY)

    national = (await db.execute(
        select(PovertyData)
        .where(PovertyData.region == NATIONAL_REGION)
        .order_by(PovertyData.date.desc())
        .limit(1),
    )).scalar_one_or_none()
    if national is None:
        raise NoDataError("No hay datos de pobreza disponibles")
    regional = (await db.execute(
        select(PovertyData)
        .where(PovertyData.region != NATIONAL_REGION)
        .order_by(PovertyData.date.desc(), PovertyData.region)
        .limit(10),
    )).scalars()
    return cached_json({
        "national": _row(national),
        "regional": [_row(r) for r in regional],
    }, CACHE_POVERTY)


@router.get("/series")
async def poverty_series(
    region: str = NATIONAL_REGION,
    indicator: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    field = resolve_indicator(indicator)
    query = (
        select(PovertyData)
        .where(PovertyData.region == region, PovertyData.cuadro_source.in_(MAIN_CUADROS))
        .order_by(PovertyData.date)
    )
    if start_date:
        query = query.where(PovertyData.date >= optional_date(start_date, "start_date"))
    if end_date:
        query = query.where(PovertyData.date <= optional_date(end_date, "end_date"))
    rows = [_row(r) for r in (await db.execute(query)).scalars()]

    if field:
        data = [
            {k: r[k] for k in ("date", "period", "year", "semester")} | {"value": r[field]}
            for r in rows if r[field] is not None
        ]
    else:
        data = rows
    return cached_json({
        "data": data,
        "metadata": {
            "count": len(data),
            "region": region,
            "indicator": field or "all",
            "date_range": {"start": rows[0]["date"], "end": rows[-1]["date"]} if rows else None,
        },
    }, CACHE_POVERTY)


@router.get("/comparison")
async def poverty_comparison(
    type: str = "regional",
    period: str | None = None,
    regions: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    """Regional ranking for one semester, or the series of several regions side by side."""
    if type == "regional":
        if period is None:
            period = (await db.execute(
                select(PovertyData.period).order_by(PovertyData.date.desc()).limit(1),
            )).scalar_one_or_none()
        rows = [_row(r) for r in (await db.execute(
            select(PovertyData).where(PovertyData.period == period),
        )).scalars()]
        rows.sort(key=lambda r: r["poverty_rate_persons"] or 0, reverse=True)
        national = next((r for r in rows if r["region"] == NATIONAL_REGION), None)
        national_rate = national["poverty_rate_persons"] if national else None
        ranked = [
            {
                **r,
                "poverty_rank": i,
                "above_national": (r["poverty_rate_persons"] or 0) > (national_rate or 0),
            }
            for i, r in enumerate(rows, start=1)
        ]
        return cached_json({
            "data": ranked,
            "metadata": {
                "type": "regional",
                "period": period,
                "regions_count": len(ranked),
                "national_average": national_rate,
            },
        }, CACHE_POVERTY)

    if type == "temporal":
        wanted = [r.strip() for r in regions.split(",")] if regions else [NATIONAL_REGION]
        rows = [_row(r) for r in (await db.execute(
            select(PovertyData)
            .where(PovertyData.region.in_(wanted), PovertyData.cuadro_source.in_(MAIN_CUADROS))
            .order_by(PovertyData.date),
        )).scalars()]
        return cached_json({
            "data": {name: [r for r in rows if r["region"] == name] for name in wanted},
            "metadata": {
                "type": "temporal",
                "regions": wanted,
                "periods_count": len(rows),
                "date_range": {"start": rows[0]["date"], "end": rows[-1]["date"]} if rows else None,
            },
        }, CACHE_POVERTY)

    raise InvalidParameterError("Tipo de comparación no válido", "type")
