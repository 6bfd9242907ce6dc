"""Cron Execution Log: persist the results of every cron run.

Invariants:
    - Uses its own session, so a failed task transaction cannot discard the log
    - A logging failure is reported in the application log and never fails the cron
"""

import logging
from datetime import datetime, timezone

from app.core.errors import ArgenStatsError
from app.infrastructure import database as db_module
from app.models.cron_execution import CronExecution
from app.schemas.cron import CronTaskResult, aggregate_status

logger = logging.getLogger(__name__)


async def record_execution(
    results: list[CronTaskResult], execution_time: datetime | None = None,
) -> bool:
    if db_module.db_manager is None:
        logger.warning("Cron execution not logged: database not initialized")
        return False
    try:
        async with db_module.db_manager.session() as db:
            db.add(CronExecution(
                execution_time=execution_time or datetime.now(timezone.utc),
                results=[r.dump() for r in results],
                status=aggregate_status(results).value,
            ))
            await db.commit()
    except ArgenStatsError as e:
        logger.error(
            f"Failed to log cron execution: {e.message}",
            extra={"error_code": e.code},
        )
        return False
    return True
