"""Poverty Updater: newest INDEC poverty report to poverty_data."""

import logging
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import DataSource
from app.core.poverty_parser import RATE_FIELDS, candidate_poverty_urls, read_poverty_workbook
from app.core.source_protocols import IndecSource
from app.models.poverty import PovertyData
from app.services.upsert import UpsertResult, upsert_rows

logger = logging.getLogger(__name__)


async def update_poverty(
    db: AsyncSession, source: IndecSource, base_url: str, today: date,
) -> UpsertResult:
    url, records = await source.first_parsable(
        candidate_poverty_urls(base_url, today),
        lambda content, _url: read_poverty_workbook(content),
    )
    logger.info(
        f"Parsed {len(records)} poverty records",
        extra={"data_source": DataSource.INDEC.value, "records": len(records), "url": url},
    )
    result = await upsert_rows(
        db, PovertyData, records, ("period", "region"),
        ("date", "semester", "year", "data_type", "cuadro_source", "source_file", *RATE_FIELDS),
    )
    await db.commit()
    return result
