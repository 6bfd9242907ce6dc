"""Admin and cron schemas — request body aliases, bounds and camelCase task results.

Invariants:
    - dryRun / from / to are accepted as aliases as well as by field name
    - Backfill days are bounded to 1..365
    - Cron task results serialize with camelCase keys
"""

from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError

from app.core.domain_types import CronStatus, TaskStatus
from app.schemas.admin import BackfillBcraRequest, BackfillDollarRequest, EmaeImportRequest
from app.schemas.cron import CronTaskResult, aggregate_status
from app.schemas.user import ApiKeyResponse


# --- BackfillDollarRequest ----------------------------------------------------

def test_backfill_dollar_defaults():
    body = BackfillDollarRequest()
    assert body.days == 30
    assert body.dry_run is False


def test_backfill_dollar_accepts_alias_and_field_name():
    assert BackfillDollarRequest.model_validate({"dryRun": True}).dry_run is True
    assert BackfillDollarRequest(dry_run=True).dry_run is True


@pytest.mark.parametrize("days", [0, 366])
def test_backfill_dollar_days_out_of_range(days):
    with pytest.raises(ValidationError):
        BackfillDollarRequest(days=days)


# --- BackfillBcraRequest ------------------------------------------------------

def test_backfill_bcra_defaults_to_both_indices():
    body = BackfillBcraRequest()
    assert body.indices == ["CER", "UVA"]
    assert body.date_from is None


def test_backfill_bcra_parses_from_to():
    body = BackfillBcraRequest.model_validate({"from": "2025-01-01", "to": "2025-01-31"})
    assert (body.date_from, body.date_to) == (date(2025, 1, 1), date(2025, 1, 31))


def test_backfill_bcra_rejects_inverted_range():
    with pytest.raises(ValidationError):
        BackfillBcraRequest.model_validate({"from": "2025-02-01", "to": "2025-01-01"})


def test_backfill_bcra_rejects_unknown_index():
    with pytest.raises(ValidationError):
        BackfillBcraRequest(indices=["ICL"])


# --- EmaeImportRequest --------------------------------------------------------

def test_emae_import_kind_literal():
    assert EmaeImportRequest(csv="date,original_value\n").kind == "general"
    with pytest.raises(ValidationError):
        EmaeImportRequest(kind="quarterly", csv="x")


def test_emae_import_requires_csv_text():
    with pytest.raises(ValidationError):
        EmaeImportRequest(csv="")


# --- Cron results -------------------------------------------------------------

def _result(status=TaskStatus.SUCCESS):
    return CronTaskResult(
        task_id="update-ipc",
        data_source="INDEC",
        start_time=datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc),
        status=status,
    )


def test_task_result_dumps_camel_case():
    dumped = _result().dump()
    assert set(dumped) == {
        "taskId", "dataSource", "startTime", "endTime", "recordsProcessed", "status", "details",
    }
    assert dumped["status"] == "SUCCESS"


def test_aggregate_status():
    ok, failed = _result(), _result(TaskStatus.FAILED)
    assert aggregate_status([ok, ok]) == CronStatus.SUCCESS
    assert aggregate_status([ok, failed]) == CronStatus.PARTIAL
    assert aggregate_status([failed]) == CronStatus.ERROR


def test_api_key_response_alias():
    assert ApiKeyResponse(api_key="ask_1").model_dump(by_alias=True) == {
        "apiKey": "ask_1", "message": None,
    }
