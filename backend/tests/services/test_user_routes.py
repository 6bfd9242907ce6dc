"""User Routes — API key issuance and usage statistics for the x-user-id caller."""

from datetime import datetime, timedelta, timezone

from app.models.api_request import ApiRequest
from app.models.user import User

USER = {"x-user-id": "user-1"}


async def test_requires_user_header(client):
    res = await client.get("/api/v1/user/api-key")

    assert res.status_code == 401


async def test_no_key_before_creation(client):
    res = await client.get("/api/v1/user/api-key", headers=USER)

    assert res.json() == {"apiKey": None}


async def test_create_then_read_key(client):
    created = (await client.post("/api/v1/user/api-key", headers=USER)).json()
    read = (await client.get("/api/v1/user/api-key", headers=USER)).json()

    assert created["message"] == "API key generada correctamente"
    assert created["apiKey"].startswith("ask_")
    assert len(created["apiKey"]) == 52
    assert read["apiKey"] == created["apiKey"]


async def test_rotation_replaces_key(client):
    first = (await client.post("/api/v1/user/api-key", headers=USER)).json()["apiKey"]
    second = (await client.post(
        "/api/v1/user/api-key", headers=USER, json={"email": "ana@example.com"},
    )).json()["apiKey"]

    assert first != second


async def test_usage_stats_unknown_user(client):
    res = await client.get("/api/v1/user/usage-stats", headers=USER)

    assert res.status_code == 404
    assert res.json()["error"]["code"] == "RESOURCE_NOT_FOUND"


async def test_usage_stats(client, test_db):
    user = User(external_user_id="user-1", api_key="ask_x", daily_requests_count=3)
    test_db.add(user)
    await test_db.flush()
    now = datetime.now(timezone.utc)
    for endpoint, status, ms in (
        ("/api/v1/dollar", 200, 10),
        ("/api/v1/dollar", 404, 30),
        ("/api/v1/ipc", 200, 20),
    ):
        test_db.add(ApiRequest(
            user_id=user.id, endpoint=endpoint, method="GET",
            status_code=status, response_time_ms=ms, created_at=now - timedelta(hours=1),
        ))
    test_db.add(ApiRequest(
        user_id=user.id, endpoint="/api/v1/emae", method="GET",
        status_code=200, response_time_ms=5, created_at=now - timedelta(days=60),
    ))
    await test_db.commit()

    body = (await client.get(
        "/api/v1/user/usage-stats", params={"detailed": "true"}, headers=USER,
    )).json()

    assert body["total_requests"] == 3
    assert body["user"]["daily_requests_count"] == 3
    assert body["top_endpoints"][0] == {"endpoint": "/api/v1/dollar", "count": 2}
    assert len(body["daily_distribution"]) == 7
    dollar = body["endpoint_details"][0]
    assert dollar == {
        "endpoint": "/api/v1/dollar", "count": 2, "error_count": 1, "avg_response_time_ms": 20,
    }


async def test_usage_stats_days_bounded(client):
    res = await client.get("/api/v1/user/usage-stats", params={"days": 0}, headers=USER)

    assert res.status_code == 400
