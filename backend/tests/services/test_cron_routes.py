"""Cron Routes — authorization, response shapes and execution logging.

Invariants:
    - Without the cron secret or x-vercel-cron the answer is 401 "No autorizado"
    - A failed task is reported in the body (status FAILED), never as an HTTP error
    - Every run leaves one cron_executions row
"""

from datetime import date, datetime, timezone

from sqlalchemy import select

from app.core.domain_types import BcraIndex, DollarType
from app.core.errors import ExternalSourceError
from app.models.cron_execution import CronExecution
from app.models.user import User
from tests.services.conftest import CRON_HEADERS
from tests.services.fake_providers import FakeIndexSource, FakeQuoteSource, quote


async def test_requires_authorization(client):
    missing = await client.get("/api/v1/cron/update-emae")
    wrong = await client.get(
        "/api/v1/cron/update-emae", headers={"Authorization": "Bearer nope"},
    )

    assert missing.status_code == 401
    assert missing.json()["error"]["message"] == "No autorizado"
    assert wrong.status_code == 401


async def test_vercel_cron_header_accepted(client):
    res = await client.get("/api/v1/cron/update-embi", headers={"x-vercel-cron": "true"})

    assert res.status_code == 200
    assert res.json()["status"] == "success"


async def test_update_dollar_shape(client, providers):
    providers.dolarapi = FakeQuoteSource([
        quote(DollarType.BLUE, 1200.0, 1220.0, datetime.now(timezone.utc)),
    ])

    res = await client.post("/api/v1/cron/update-dollar", headers=CRON_HEADERS)

    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["data_source"] == "dolarapi.com"
    assert body["new_records"] == 1
    assert body["duplicates_skipped"] == 0
    assert body["details"]["processed_types"] == ["BLUE"]
    assert body["details"]["errors"] == []


async def test_update_dollar_provider_failure(client, providers):
    providers.dolarapi = FakeQuoteSource(error=ExternalSourceError("HTTP 503", "dolarapi"))

    body = (await client.get("/api/v1/cron/update-dollar", headers=CRON_HEADERS)).json()

    assert body["success"] is False
    assert body["new_records"] == 0
    assert body["details"]["errors"] == [body["summary"]]


async def test_single_task_result(client, providers):
    providers.bcra = FakeIndexSource({
        BcraIndex.CER: [
            {"date": date(2025, 1, 14), "value": 499.0},
            {"date": date(2025, 1, 15), "value": 500.0},
        ],
        BcraIndex.UVA: [{"date": date(2025, 1, 15), "value": 1300.0}],
    })

    body = (await client.get("/api/v1/cron/update-bcra-indices", headers=CRON_HEADERS)).json()

    assert body["success"] is True
    assert "executionTime" in body
    result = body["results"][0]
    assert result["taskId"] == "update-bcra-indices"
    assert result["dataSource"] == "BCRA"
    assert result["recordsProcessed"] == 3
    assert result["status"] == "SUCCESS"
    assert result["details"]["CER"]["inserted"] == 2


async def test_failed_task_reported_not_raised(client):
    """No EMAE workbook available: 200 with status error and a FAILED result."""
    res = await client.get("/api/v1/cron/update-emae", headers=CRON_HEADERS)

    assert res.status_code == 200
    body = res.json()
    assert body["success"] is False
    assert body["status"] == "error"
    assert body["results"][0]["status"] == "FAILED"
    assert body["results"][0]["details"] == "INDEC error: HTTP 404"


async def test_update_all_is_partial_and_logged(client, test_db):
    """The fake providers have no INDEC files, so only the INDEC tasks fail."""
    body = (await client.post("/api/v1/cron/update-all", headers=CRON_HEADERS)).json()

    assert body["status"] == "partial"
    assert body["success"] is True
    statuses = {r["taskId"]: r["status"] for r in body["results"]}
    assert len(statuses) == 7
    assert statuses["update-embi"] == "SUCCESS"
    assert statuses["update-ipc"] == "FAILED"

    logged = (await test_db.execute(select(CronExecution))).scalars().all()
    assert len(logged) == 1
    assert logged[0].status == "partial"
    assert len(logged[0].results) == 7


async def test_reset_daily_requests(client, test_db):
    test_db.add(User(external_user_id="user-1", daily_requests_count=5))
    await test_db.commit()

    body = (await client.get("/api/v1/cron/reset-daily-requests", headers=CRON_HEADERS)).json()

    assert body["results"][0]["details"] == "1 usuarios reiniciados"
    test_db.expire_all()
    user = (await test_db.execute(select(User))).scalar_one()
    assert user.daily_requests_count == 0
