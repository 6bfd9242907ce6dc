"""Labor Market Routes: EPH quarterly activity, employment and unemployment rates.

Invariants:
    - Variations are differences in percentage points against the previous quarter (qtq)
      and the same quarter one year earlier (yoy), within the same series
    - A series is identified by (data_type, region, gender, age_group)
    - |yoy| > 1 point on any rate flags has_significant_yoy_change

Design Decisions:
    - The five views are built in Python over one query instead of database views,
      so sqlite and postgres serve identical payloads
"""

import logging
import re
from collections import defaultdict
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.response_helpers import (
    CACHE_DATA, cached_json, csv_response, optional_date,
)
from app.core.domain_types import ExportFormat, LaborDataType, LaborView
from app.core.errors import InvalidParameterError, NoDataError
from app.core.labor_market_parser import (
    INDICATOR_FIELDS, NATIONAL_REGION, POPULATION_FIELDS,
)
from app.core.variations import attach_quarterly_variations
from app.infrastructure.database import get_db
from app.models.labor_market import LaborMarket

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/labor-market", tags=["labor-market"])

CACHE_LABOR = (3600, 7200)
SERIES_KEYS = ("data_type", "region", "gender", "age_group")
SIGNIFICANT_CHANGE = 1.0
_YEAR_RE = re.compile(r"^\d{4}$")

VIEW_DESCRIPTIONS = {
    LaborView.TEMPORAL: "Serie temporal completa con variaciones vs período anterior",
    LaborView.LATEST: "Último período disponible por cada tipo de dato con variaciones",
    LaborView.BY_TYPE: "Datos organizados por tipo (nacional/regional/demográfico)",
    LaborView.COMPARISON: "Comparación del último período entre datos nacionales, regionales y demográficos",
    LaborView.ANNUAL: "Promedios anuales con variaciones interanuales",
}

DATA_TYPE_DESCRIPTIONS = {
    LaborDataType.NATIONAL: "Total país (31 aglomerados urbanos)",
    LaborDataType.REGIONAL: "Regiones geográficas (GBA, Cuyo, NEA, NOA, Pampeana, Patagónica)",
    LaborDataType.DEMOGRAPHIC: "Segmentos de población por género y edad",
    LaborDataType.ALL: "Combinación de datos nacionales, regionales y demográficos",
}


def _row(r: LaborMarket) -> dict:
    row = {
        "date": r.date,
        "period": r.period,
        "data_type": r.data_type,
        "region": r.region,
        "gender": r.gender,
        "age_group": r.age_group,
        "demographic_segment": r.demographic_segment,
    }
    for name in INDICATOR_FIELDS + POPULATION_FIELDS:
        row[name] = getattr(r, name)
    row["source_file"] = r.source_file
    return row


def significant_indicators(row: dict) -> list[str]:
    return [
        name for name in INDICATOR_FIELDS
        if abs(row.get(f"{name}_yoy") or 0) > SIGNIFICANT_CHANGE
    ]


def _flag(row: dict) -> dict:
    significant = significant_indicators(row)
    return {
        **row,
        "has_significant_yoy_change": bool(significant),
        "significant_yoy_indicators": significant,
    }


def _matches_period(row: dict, period: str | None) -> bool:
    if not period:
        return True
    if _YEAR_RE.match(period):
        return row["period"].endswith(period)
    return row["period"].upper() == period.upper()


def latest_per_type(rows: list[dict]) -> list[dict]:
    newest: dict[str, date] = {}
    for row in rows:
        current = newest.get(row["data_type"])
        if current is None or row["date"] > current:
            newest[row["data_type"]] = row["date"]
    return [r for r in rows if r["date"] == newest[r["data_type"]]]


def compare_latest(rows: list[dict]) -> list[dict]:
    """Latest period rows with each rate's difference against the national figure."""
    if not rows:
        return []
    last = max(r["date"] for r in rows)
    current = [r for r in rows if r["date"] == last]
    national = next(
        (r for r in current
         if r["data_type"] == LaborDataType.NATIONAL.value and r["region"] == NATIONAL_REGION),
        None,
    )
    out = []
    for row in current:
        item = {k: row[k] for k in ("date", "period") + SERIES_KEYS + ("demographic_segment",)}
        for name in INDICATOR_FIELDS:
            item[name] = row[name]
            base = national.get(name) if national else None
            item[f"{name}_vs_national"] = (
                round(row[name] - base, 2) if row[name] is not None and base is not None else None
            )
        out.append(item)
    return out


def annual_averages(rows: list[dict]) -> list[dict]:
    """Yearly mean of each rate per series, with the difference against the prior year."""
    buckets: dict[tuple, list[dict]] = defaultdict(list)
    for row in rows:
        buckets[tuple(row[k] for k in SERIES_KEYS) + (row["date"].year,)].append(row)

    averages = {}
    for key, items in buckets.items():
        entry = dict(zip(SERIES_KEYS + ("year",), key))
        entry["quarters"] = len(items)
        for name in INDICATOR_FIELDS:
            values = [i[name] for i in items if i[name] is not None]
            entry[f"avg_{name}"] = round(sum(values) / len(values), 2) if values else None
        averages[key] = entry

    out = []
    for key, entry in averages.items():
        prior = averages.get(key[:-1] + (key[-1] - 1,))
        for name in INDICATOR_FIELDS:
            value = entry[f"avg_{name}"]
            base = prior.get(f"avg_{name}") if prior else None
            entry[f"{name}_yoy"] = (
                round(value - base, 2) if value is not None and base is not None else None
            )
        out.append(entry)
    return sorted(out, key=lambda e: (-e["year"], e["data_type"], e["region"]))


def available_options(rows: list[dict]) -> dict:
    def distinct(key):
        return sorted({r[key] for r in rows if r.get(key)}, key=str)

    return {
        "data_types": distinct("data_type"),
        "regions": distinct("region"),
        "genders": distinct("gender"),
        "age_groups": distinct("age_group"),
        "demographic_segments": distinct("demographic_segment"),
        "periods": sorted({r.get("period") or str(r.get("year")) for r in rows}),
    }


@router.get("")
async def list_labor_market(
    view: LaborView = LaborView.TEMPORAL,
    data_type: LaborDataType = LaborDataType.NATIONAL,
    region: str | None = None,
    gender: str | None = None,
    age_group: str | None = None,
    segment: str | None = None,
    indicator: str = "all",
    period: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    include_variations: bool = True,
    limit: int = Query(100, ge=1, le=1000),
    format: ExportFormat = ExportFormat.JSON,
    db: AsyncSession = Depends(get_db),
):
    if indicator != "all" and indicator not in INDICATOR_FIELDS:
        raise InvalidParameterError(
            f"Indicador inválido. Use: {', '.join(INDICATOR_FIELDS)}, all", "indicator",
        )
    start = optional_date(start_date, "start_date")
    end = optional_date(end_date, "end_date")

    query = select(LaborMarket).order_by(LaborMarket.date)
    if view != LaborView.COMPARISON:
        if data_type != LaborDataType.ALL:
            query = query.where(LaborMarket.data_type == data_type.value)
        if region:
            query = query.where(LaborMarket.region == region)
        if gender:
            query = query.where(LaborMarket.gender == gender)
        if age_group:
            query = query.where(LaborMarket.age_group == age_group)
        if segment:
            query = query.where(LaborMarket.demographic_segment == segment)
    rows = [_row(r) for r in (await db.execute(query)).scalars()]

    # Variations need the neighbouring quarters, so they run before date filtering.
    if include_variations and view != LaborView.ANNUAL:
        rows = attach_quarterly_variations(rows, INDICATOR_FIELDS, SERIES_KEYS)

    if view == LaborView.ANNUAL:
        data = annual_averages(rows)
        if period and _YEAR_RE.match(period):
            data = [d for d in data if d["year"] == int(period)]
    else:
        rows = [
            r for r in rows
            if _matches_period(r, period)
            and (start is None or r["date"] >= start)
            and (end is None or r["date"] <= end)
        ]
        if view == LaborView.LATEST:
            rows = latest_per_type(rows)
        if view == LaborView.COMPARISON:
            data = compare_latest(rows)
        else:
            if indicator != "all":
                rows = [r for r in rows if r.get(indicator) is not None]
            rows.sort(key=lambda r: (r["data_type"], r["region"], r["gender"]))
            rows.sort(key=lambda r: r["date"], reverse=True)
            data = [_flag(r) for r in rows] if view != LaborView.BY_TYPE else rows
    data = data[:limit]

    if format == ExportFormat.CSV:
        return csv_response(data, f"labor_market_{view.value}_{data_type.value}.csv")
    return cached_json({
        "data": data,
        "metadata": {
            "view": view.value,
            "data_type": data_type.value,
            "count": len(data),
            "includes_variations": include_variations,
            "filtered_by": {
                "data_type": data_type.value,
                "region": region,
                "gender": gender,
                "age_group": age_group,
                "demographic_segment": segment,
                "indicator": indicator,
                "period": period,
                "start_date": start_date,
                "end_date": end_date,
            },
            "available_options": available_options(data),
            "data_description": VIEW_DESCRIPTIONS[view],
            "data_types_info": {t.value: d for t, d in DATA_TYPE_DESCRIPTIONS.items()},
        },
    }, CACHE_LABOR)


@router.get("/latest")
async def latest_labor_market(
    region: str = NATIONAL_REGION,
    age_group: str = "Total",
    gender: str = "Total",
    db: AsyncSession = Depends(get_db),
):
    rows = [_row(r) for r in (await db.execute(
        select(LaborMarket)
        .where(
            LaborMarket.region == region,
            LaborMarket.age_group == age_group,
            LaborMarket.gender == gender,
        )
        .order_by(LaborMarket.date),
    )).scalars()]
    if not rows:
        raise NoDataError("No se encontraron datos del mercado laboral")
    latest = attach_quarterly_variations(rows, INDICATOR_FIELDS, SERIES_KEYS)[-1]
    return cached_json({"data": _flag(latest)}, CACHE_LABOR)


@router.get("/metadata")
async def labor_market_metadata(db: AsyncSession = Depends(get_db)):
    stored = (await db.execute(
        select(
            LaborMarket.data_type, LaborMarket.region, LaborMarket.period, LaborMarket.date,
        ).distinct(),
    )).all()
    periods = sorted({(d, p) for _, _, p, d in stored})
    return cached_json({
        "views": {v.value: d for v, d in VIEW_DESCRIPTIONS.items()},
        "data_types": {t.value: d for t, d in DATA_TYPE_DESCRIPTIONS.items()},
        "indicators": list(INDICATOR_FIELDS),
        "regions": sorted({r for _, r, _, _ in stored}),
        "periods": [p for _, p in periods],
        "latest_period": periods[-1][1] if periods else None,
    }, CACHE_DATA)
