"""Labor Market Updater: newest available EPH workbook to labor_market."""

import logging
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import DataSource
from app.core.errors import SourceFormatError
from app.core.labor_market_parser import (
    INDICATOR_FIELDS, POPULATION_FIELDS, candidate_labor_urls, read_labor_workbook,
)
from app.core.source_protocols import IndecSource
from app.models.labor_market import LaborMarket
from app.services.upsert import UpsertResult, upsert_rows

logger = logging.getLogger(__name__)

KEY = ("period", "data_type", "region", "gender", "age_group")


def _parse(content: bytes, url: str) -> list[dict]:
    records = read_labor_workbook(content, url.rsplit("/", 1)[-1])
    if not records:
        raise SourceFormatError("EPH workbook produced no records", DataSource.INDEC.value)
    return records


async def update_labor_market(
    db: AsyncSession, source: IndecSource, base_url: str, today: date,
) -> UpsertResult:
    url, records = await source.first_parsable(candidate_labor_urls(base_url, today), _parse)
    logger.info(
        f"Parsed {len(records)} EPH records",
        extra={"data_source": DataSource.INDEC.value, "records": len(records), "url": url},
    )
    result = await upsert_rows(
        db, LaborMarket, records, KEY,
        ("date", "demographic_segment", "source_file", *INDICATOR_FIELDS, *POPULATION_FIELDS),
    )
    await db.commit()
    return result
