"""EMBI Updater: riesgo país sheet rows inserted once per external_id.

Invariants:
    - Existing external_ids are never rewritten
    - Existence is checked in batches of 100 ids
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import DataSource
from app.core.embi_parser import parse_embi_rows
from app.core.periods import as_utc
from app.core.source_protocols import SheetSource
from app.models.embi_risk import EmbiRisk
from app.services.upsert import UpsertResult, upsert_rows

logger = logging.getLogger(__name__)


async def update_embi(db: AsyncSession, source: SheetSource) -> UpsertResult:
    rows = parse_embi_rows(await source.fetch_csv())
    for row in rows:
        row["closing_date"] = as_utc(row["closing_date"])
    logger.info(
        f"Parsed {len(rows)} EMBI rows",
        extra={"data_source": DataSource.GOOGLE_SHEETS.value, "records": len(rows)},
    )
    result = await upsert_rows(db, EmbiRisk, rows, ("external_id",))
    await db.commit()
    logger.info(
        f"EMBI update: {result.inserted} new, {result.skipped} already stored",
        extra={"data_source": DataSource.GOOGLE_SHEETS.value, "records": result.inserted},
    )
    return result
