"""Cron Tasks: run each updater and report it as a CronTaskResult.

Invariants:
    - A failing task yields status FAILED with the error message; it never raises
    - The session is rolled back after a failed task so later tasks start clean
    - update-all runs every data task in a fixed order

Design Decisions:
    - Each task returns (records_processed, details); run_task adds timing and status
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.core.domain_types import DataSource, TaskStatus
from app.core.errors import ArgenStatsError
from app.core.periods import today_in_argentina
from app.infrastructure.providers import Providers
from app.schemas.cron import CronTaskResult
from app.services.bcra_updater import update_bcra_indices
from app.services.dollar_updater import update_dollar_rates
from app.services.embi_updater import update_embi
from app.services.emae_updater import update_emae
from app.services.ipc_updater import update_ipc
from app.services.labor_market_updater import update_labor_market
from app.services.poverty_updater import update_poverty
from app.services.users import reset_daily_requests

logger = logging.getLogger(__name__)

TaskAction = Callable[[], Awaitable[tuple[int, str | dict]]]


async def run_task(
    db: AsyncSession, task_id: str, data_source: DataSource, action: TaskAction,
) -> CronTaskResult:
    result = CronTaskResult(
        task_id=task_id,
        data_source=data_source.value,
        start_time=datetime.now(timezone.utc),
    )
    logger.info("Cron task started", extra={"task_id": task_id, "data_source": data_source.value})
    try:
        result.records_processed, result.details = await action()
    except ArgenStatsError as e:
        await db.rollback()
        result.status = TaskStatus.FAILED
        result.details = e.message
        logger.warning(
            f"Cron task failed: {e.message}",
            extra={"task_id": task_id, "error_code": e.code},
        )
    except SQLAlchemyError as e:
        await db.rollback()
        result.status = TaskStatus.FAILED
        result.details = "Database operation failed"
        logger.error(
            f"Cron task database error: {e}",
            extra={"task_id": task_id, "error_code": "DATABASE_ERROR"},
        )
    result.end_time = datetime.now(timezone.utc)
    logger.info(
        f"Cron task finished: {result.status.value}",
        extra={"task_id": task_id, "records": result.records_processed},
    )
    return result


def _upsert_details(result) -> dict:
    return {"inserted": result.inserted, "updated": result.updated, "skipped": result.skipped}


def build_tasks(
    db: AsyncSession, providers: Providers, settings: Settings,
) -> dict[str, tuple[DataSource, TaskAction]]:
    """task_id -> (data source, action) for every data cron."""

    async def dollar():
        summary = await update_dollar_rates(db, providers.dolarapi)
        return summary.new_records + summary.replicated_records, {
            "new_records": summary.new_records,
            "intraday_updates": summary.intraday_updates,
            "duplicates_skipped": summary.duplicates_skipped,
            "replicated_records": summary.replicated_records,
            "processed_types": summary.processed_types,
            "errors": summary.errors,
            "summary": summary.message,
        }

    async def emae():
        result = await update_emae(db, providers.indec)
        return result.processed, _upsert_details(result)

    async def ipc():
        result = await update_ipc(db, providers.indec)
        return result.processed, _upsert_details(result)

    async def embi():
        result = await update_embi(db, providers.sheets)
        return result.inserted, _upsert_details(result)

    async def bcra():
        results = await update_bcra_indices(db, providers.bcra)
        return (
            sum(r.processed for r in results.values()),
            {name.upper(): _upsert_details(r) for name, r in results.items()},
        )

    async def labor():
        result = await update_labor_market(
            db, providers.indec, settings.indec_base_url, today_in_argentina(),
        )
        return result.processed, _upsert_details(result)

    async def poverty():
        result = await update_poverty(
            db, providers.indec, settings.indec_base_url, today_in_argentina(),
        )
        return result.processed, _upsert_details(result)

    return {
        "update-dollar": (DataSource.DOLARAPI, dollar),
        "update-emae": (DataSource.INDEC, emae),
        "update-ipc": (DataSource.INDEC, ipc),
        "update-embi": (DataSource.GOOGLE_SHEETS, embi),
        "update-bcra-indices": (DataSource.BCRA, bcra),
        "update-labor-market": (DataSource.INDEC, labor),
        "update-poverty": (DataSource.INDEC, poverty),
    }


async def run_reset_daily_requests(db: AsyncSession) -> CronTaskResult:
    async def action():
        count = await reset_daily_requests(db)
        return count, f"{count} usuarios reiniciados"

    return await run_task(db, "reset-daily-requests", DataSource.INTERNAL, action)
