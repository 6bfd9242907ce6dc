"""Cron Routes: scheduled ingestion endpoints, one per data source plus update-all.

Invariants:
    - Every route requires the cron secret (Bearer) or the x-vercel-cron header
    - Every run is logged to cron_executions; a logging failure is not a cron failure
    - A failing task never turns into an HTTP error: it is reported with status FAILED
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.core.domain_types import CronStatus
from app.infrastructure.database import get_db
from app.infrastructure.providers import Providers
from app.api.dependencies import get_providers, require_cron_auth
from app.schemas.cron import CronRunResponse, CronTaskResult, aggregate_status
from app.services.cron_log import record_execution
from app.services.cron_tasks import build_tasks, run_reset_daily_requests, run_task

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/api/v1/cron",
    tags=["cron"],
    dependencies=[Depends(require_cron_auth)],
)

CRON_METHODS = ["GET", "POST"]


async def _finish(results: list[CronTaskResult], started: datetime) -> dict:
    await record_execution(results, started)
    status = aggregate_status(results)
    return CronRunResponse(
        success=status != CronStatus.ERROR,
        execution_time=started,
        status=status,
        results=[r.dump() for r in results],
    ).model_dump(mode="json", by_alias=True)


async def _run_one(
    task_id: str, db: AsyncSession, providers: Providers, settings: Settings,
) -> CronTaskResult:
    data_source, action = build_tasks(db, providers, settings)[task_id]
    return await run_task(db, task_id, data_source, action)


@router.api_route("/update-dollar", methods=CRON_METHODS)
async def cron_update_dollar(
    db: AsyncSession = Depends(get_db),
    providers: Providers = Depends(get_providers),
    settings: Settings = Depends(get_settings),
):
    started = datetime.now(timezone.utc)
    result = await _run_one("update-dollar", db, providers, settings)
    await record_execution([result], started)
    details = result.details if isinstance(result.details, dict) else {}
    return {
        "success": result.status.value == "SUCCESS",
        "execution_time": started.isoformat(),
        "data_source": result.data_source,
        "new_records": details.get("new_records", 0),
        "intraday_updates": details.get("intraday_updates", 0),
        "duplicates_skipped": details.get("duplicates_skipped", 0),
        "replicated_records": details.get("replicated_records", 0),
        "summary": details.get("summary", result.details),
        "details": {
            "processed_types": details.get("processed_types", []),
            "errors": details.get("errors", [] if details else [result.details]),
            "execution_duration": (result.end_time - result.start_time).total_seconds(),
        },
    }


def _single_task_route(task_id: str):
    async def endpoint(
        db: AsyncSession = Depends(get_db),
        providers: Providers = Depends(get_providers),
        settings: Settings = Depends(get_settings),
    ):
        started = datetime.now(timezone.utc)
        return await _finish([await _run_one(task_id, db, providers, settings)], started)

    endpoint.__name__ = f"cron_{task_id.replace('-', '_')}"
    router.add_api_route(f"/{task_id}", endpoint, methods=CRON_METHODS)


for _task_id in (
    "update-emae", "update-ipc", "update-embi", "update-bcra-indices",
    "update-labor-market", "update-poverty",
):
    _single_task_route(_task_id)


@router.api_route("/update-all", methods=CRON_METHODS)
async def cron_update_all(
    db: AsyncSession = Depends(get_db),
    providers: Providers = Depends(get_providers),
    settings: Settings = Depends(get_settings),
):
    started = datetime.now(timezone.utc)
    results = [
        await run_task(db, task_id, data_source, action)
        for task_id, (data_source, action) in build_tasks(db, providers, settings).items()
    ]
    logger.info(
        f"update-all finished: {aggregate_status(results).value}",
        extra={"records": sum(r.records_processed for r in results)},
    )
    return await _finish(results, started)


@router.api_route("/reset-daily-requests", methods=CRON_METHODS)
async def cron_reset_daily_requests(db: AsyncSession = Depends(get_db)):
    started = datetime.now(timezone.utc)
    return await _finish([await run_reset_daily_requests(db)], started)
