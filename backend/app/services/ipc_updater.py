"""IPC Updater: INDEC divisions CSV to the ipc table, upserting on (date, component_code, region)."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import DataSource
from app.core.ipc_parser import read_ipc_csv
from app.core.source_protocols import IndecSource
from app.models.ipc import Ipc
from app.services.upsert import UpsertResult, upsert_rows

logger = logging.getLogger(__name__)


async def update_ipc(db: AsyncSession, source: IndecSource) -> UpsertResult:
    records = read_ipc_csv(await source.fetch_ipc_csv())
    logger.info(
        f"Parsed {len(records)} IPC rows",
        extra={"data_source": DataSource.INDEC.value, "records": len(records)},
    )
    result = await upsert_rows(
        db, Ipc, records, ("date", "component_code", "region"),
        ("component", "component_type", "index_value"),
    )
    await db.commit()
    return result
