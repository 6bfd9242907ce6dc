"""Access Middleware — API keys, rate-limit headers and request tracking on data routes.

Invariants:
    - External callers without a valid x-api-key get 401 plus rate-limit headers
    - A valid key bumps the user's daily counter and is tracked as a hash
    - Localhost and internal browser requests need no key
"""

from contextlib import asynccontextmanager

import pytest
from sqlalchemy import select

import app.infrastructure.database as db_module
from app.core.request_classifier import hash_api_key
from app.models.api_request import ApiRequest
from app.models.user import User

API_KEY = "ask_" + "ab" * 24


@pytest.fixture
async def user(test_db):
    user = User(external_user_id="user-1", api_key=API_KEY)
    test_db.add(user)
    await test_db.commit()
    return user


async def _tracked(test_db) -> list[ApiRequest]:
    test_db.expire_all()
    return (await test_db.execute(select(ApiRequest))).scalars().all()


async def test_missing_key_is_401_with_headers(external_client, test_db):
    res = await external_client.get("/api/v1/dollar")

    assert res.status_code == 401
    error = res.json()["error"]
    assert error["code"] == "API_KEY_REQUIRED"
    assert "argenstats.com/profile" in error["hint"]
    assert res.headers["x-ratelimit-remaining"] == "0"
    assert res.headers["x-ratelimit-limit"] == "999999"
    assert "x-ratelimit-reset" in res.headers

    tracked = await _tracked(test_db)
    assert [(t.endpoint, t.status_code) for t in tracked] == [("/api/v1/dollar", 401)]


async def test_unknown_key_rejected(external_client, user):
    res = await external_client.get("/api/v1/dollar", headers={"x-api-key": "ask_wrong"})

    assert res.status_code == 401
    assert res.json()["error"]["message"] == "Invalid API key"


async def test_valid_key_counts_and_tracks(external_client, user, test_db):
    res = await external_client.get(
        "/api/v1/dollar",
        params={"type": "BLUE", "token": "secret"},
        headers={"x-api-key": API_KEY, "x-forwarded-for": "203.0.113.7, 10.0.0.1"},
    )

    assert res.status_code == 200
    assert res.headers["x-ratelimit-remaining"] == "999998"

    test_db.expire_all()
    stored = (await test_db.execute(select(User))).scalar_one()
    stored_id = stored.id
    assert stored.daily_requests_count == 1

    (tracked,) = await _tracked(test_db)
    assert tracked.user_id == stored_id
    assert tracked.api_key_used == hash_api_key(API_KEY)
    assert tracked.ip_address == "203.0.113.7"
    assert tracked.request_params == {"type": "BLUE"}
    assert tracked.is_internal is False


async def test_localhost_needs_no_key(client):
    res = await client.get("/api/v1/ipc")

    assert res.status_code == 200
    assert res.headers["x-ratelimit-remaining"] == "999999"


async def test_internal_browser_request_not_tracked(external_client, test_db):
    res = await external_client.get(
        "/api/v1/calendar", headers={"origin": "https://argenstats.com"},
    )

    assert res.status_code == 200
    assert await _tracked(test_db) == []


async def test_development_tool_is_never_internal(external_client):
    res = await external_client.get(
        "/api/v1/calendar",
        headers={"origin": "https://argenstats.com", "user-agent": "PostmanRuntime/7.36"},
    )

    assert res.status_code == 401


async def test_unprotected_routes_pass_through(external_client):
    res = await external_client.get("/api/v1/health/")

    assert res.status_code == 200
    assert "x-ratelimit-limit" not in res.headers


class _UnreachableDatabase:
    @asynccontextmanager
    async def session(self):
        raise ConnectionRefusedError("connect call failed ('10.0.0.5', 5432)")
        yield


async def test_unreachable_database_lets_request_through(external_client, monkeypatch):
    monkeypatch.setattr(db_module, "db_manager", _UnreachableDatabase())

    res = await external_client.get("/api/v1/calendar")

    assert res.status_code == 200
    assert res.headers["x-ratelimit-remaining"] == "999999"
