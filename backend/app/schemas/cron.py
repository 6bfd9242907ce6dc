"""Cron Schemas: per-task results reported by every cron route and stored in cron_executions.

Invariants:
    - Serialized with camelCase keys (taskId, dataSource, recordsProcessed, ...)
    - status is SUCCESS or FAILED per task; the execution aggregates to success/partial/error
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.core.domain_types import CronStatus, TaskStatus


class CronTaskResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    task_id: str
    data_source: str
    start_time: datetime
    end_time: datetime | None = None
    records_processed: int = 0
    status: TaskStatus = TaskStatus.SUCCESS
    details: str | dict = ""

    def dump(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def aggregate_status(results: list[CronTaskResult]) -> CronStatus:
    """success when every task succeeded, error when none did, partial otherwise."""
    failed = sum(1 for r in results if r.status == TaskStatus.FAILED)
    if failed == 0:
        return CronStatus.SUCCESS
    if failed == len(results):
        return CronStatus.ERROR
    return CronStatus.PARTIAL


class CronRunResponse(BaseModel):
    success: bool
    execution_time: datetime = Field(serialization_alias="executionTime")
    status: CronStatus
    results: list[dict]
