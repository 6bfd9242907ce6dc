"""CER / UVA Routes: one router per BCRA index, built from the same factory.

Invariants:
    - Variations are computed over the full stored series, then sliced, so paging never
      changes a row's daily, monthly or yearly change
    - range and specific-date require their dates; a missing date is a 400
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.response_helpers import cached_json, csv_response, optional_date
from app.core.domain_types import BcraIndex, ExportFormat, IndexQueryType, SortOrder
from app.core.errors import InvalidParameterError, NoDataError
from app.core.index_stats import attach_index_variations, index_stats, pagination
from app.infrastructure.database import get_db
from app.models.bcra_index import INDEX_MODELS

logger = logging.getLogger(__name__)

CACHE_INDEX = (300, 600)

DESCRIPTIONS = {
    BcraIndex.CER: "Coeficiente de Estabilización de Referencia",
    BcraIndex.UVA: "Unidad de Valor Adquisitivo",
}


async def load_series(db: AsyncSession, index: BcraIndex) -> list[dict]:
    """Full series ascending with variations attached."""
    model = INDEX_MODELS[index]
    rows = (await db.execute(select(model.date, model.value).order_by(model.date))).all()
    return attach_index_variations([{"date": d, "value": v} for d, v in rows])


def build_index_router(index: BcraIndex) -> APIRouter:
    router = APIRouter(prefix=f"/api/v1/{index.value}", tags=[index.value])
    label = index.value.upper()

    @router.get("")
    async def query_index(
        type: IndexQueryType = IndexQueryType.HISTORICAL,
        limit: int = Query(100, ge=1, le=1000),
        page: int = Query(1, ge=1),
        order: SortOrder = SortOrder.DESC,
        start_date: str | None = None,
        end_date: str | None = None,
        date: str | None = None,
        format: ExportFormat = ExportFormat.JSON,
        db: AsyncSession = Depends(get_db),
    ):
        series = await load_series(db, index)
        meta = {"index": label, "description": DESCRIPTIONS[index], "type": type.value}

        if type == IndexQueryType.LATEST:
            if not series:
                raise NoDataError(f"No hay datos de {label} disponibles")
            return cached_json({"data": series[-1], "metadata": meta}, CACHE_INDEX)

        if type == IndexQueryType.SPECIFIC_DATE:
            if not date:
                raise InvalidParameterError("El parámetro date es requerido", "date")
            wanted = optional_date(date, "date")
            match = next((p for p in series if p["date"] == wanted), None)
            if match is None:
                raise NoDataError(f"No hay datos de {label} para {wanted.isoformat()}")
            return cached_json({"data": match, "metadata": meta}, CACHE_INDEX)

        if type == IndexQueryType.RANGE:
            if not start_date or not end_date:
                raise InvalidParameterError(
                    "start_date y end_date son requeridos para type=range", "start_date",
                )
            start = optional_date(start_date, "start_date")
            end = optional_date(end_date, "end_date")
            points = [p for p in series if start <= p["date"] <= end]
            newest_first = list(reversed(points))
            data = newest_first if order == SortOrder.DESC else points
            if format == ExportFormat.CSV:
                return csv_response(data, f"{index.value}_{start}_{end}.csv")
            return cached_json({
                "data": data,
                "stats": index_stats(newest_first),
                "metadata": {**meta, "start_date": start, "end_date": end, "count": len(data)},
            }, CACHE_INDEX)

        ordered = list(reversed(series)) if order == SortOrder.DESC else series
        offset = (page - 1) * limit
        data = ordered[offset:offset + limit]
        if format == ExportFormat.CSV:
            return csv_response(data, f"{index.value}.csv")
        return cached_json({
            "data": data,
            "pagination": pagination(len(series), page, limit),
            "metadata": {**meta, "order": order.value, "count": len(data)},
        }, CACHE_INDEX)

    return router


cer_router = build_index_router(BcraIndex.CER)
uva_router = build_index_router(BcraIndex.UVA)
