"""BCRA Updater: CER / UVA recent values and full-history backfill, upserting on date."""

import logging
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import BcraIndex, DataSource
from app.core.source_protocols import IndexSource
from app.models.bcra_index import INDEX_MODELS
from app.services.upsert import UpsertResult, upsert_rows

logger = logging.getLogger(__name__)


async def update_bcra_indices(
    db: AsyncSession, source: IndexSource, count: int = 30,
) -> dict[str, UpsertResult]:
    results = {}
    for index, model in INDEX_MODELS.items():
        points = await source.fetch_latest(index, count)
        results[index.value] = await upsert_rows(db, model, points, ("date",), ("value",))
        logger.info(
            f"{index.value.upper()}: {results[index.value].inserted} new of {len(points)}",
            extra={"data_source": DataSource.BCRA.value, "records": len(points)},
        )
    await db.commit()
    return results


async def backfill_bcra_indices(
    db: AsyncSession,
    source: IndexSource,
    indices: list[BcraIndex],
    date_from: date | None = None,
    date_to: date | None = None,
) -> dict[str, dict]:
    summary = {}
    for index in indices:
        points = await source.fetch_all(index, date_from, date_to)
        result = await upsert_rows(db, INDEX_MODELS[index], points, ("date",), ("value",))
        await db.commit()
        summary[index.value.upper()] = {
            "fetched": len(points),
            "inserted": result.inserted,
            "updated": result.updated,
            "date_range": {
                "from": points[-1]["date"].isoformat(),
                "to": points[0]["date"].isoformat(),
            } if points else None,
        }
        logger.info(
            f"{index.value.upper()} backfill: {result.inserted} inserted",
            extra={"data_source": DataSource.BCRA.value, "records": result.inserted},
        )
    return summary
