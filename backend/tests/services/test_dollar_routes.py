"""Dollar Routes — history, latest quotes, CSV export and metadata over HTTP.

Invariants:
    - Rows come newest first, variations compare with the next older row of the same type
    - Unknown dollar types are a 400, an empty result set on /latest is a 404
"""

import pytest

from app.models.dollar_rate import DollarRate
from tests.services.fake_providers import utc


@pytest.fixture
async def seeded(test_db):
    test_db.add_all([
        DollarRate(
            date=utc(2025, 1, 14, 14, 0), dollar_type="BLUE",
            buy_price=1180.0, sell_price=1200.0, updated_at=utc(2025, 1, 14, 14, 0),
        ),
        DollarRate(
            date=utc(2025, 1, 15, 14, 0), dollar_type="BLUE",
            buy_price=1200.0, sell_price=1220.0, updated_at=utc(2025, 1, 15, 14, 0),
        ),
        DollarRate(
            date=utc(2025, 1, 15, 14, 0), dollar_type="OFICIAL",
            buy_price=1000.0, sell_price=1050.0, updated_at=utc(2025, 1, 15, 14, 0),
        ),
    ])
    await test_db.commit()


async def test_history_newest_first_with_variations(client, seeded):
    res = await client.get("/api/v1/dollar")

    assert res.status_code == 200
    body = res.json()
    assert body["metadata"]["count"] == 3
    first, second, third = body["data"]
    assert (first["dollar_type"], second["dollar_type"], third["dollar_type"]) == (
        "BLUE", "OFICIAL", "BLUE",
    )
    assert first["date"] == "2025-01-15T14:00:00+00:00"
    assert first["variation_buy"] == 1.69
    assert first["spread"] == 1.67
    assert second["variation_buy"] is None
    assert third["variation_sell"] is None


async def test_history_sets_cache_and_rate_limit_headers(client, seeded):
    res = await client.get("/api/v1/dollar")

    assert res.headers["cache-control"] == "public, max-age=900, stale-while-revalidate=1800"
    assert res.headers["x-ratelimit-limit"] == "999999"
    assert res.headers["x-ratelimit-remaining"] == "999999"


async def test_history_filters_by_type_and_date(client, seeded):
    by_type = (await client.get("/api/v1/dollar", params={"type": "blue"})).json()
    by_date = (await client.get("/api/v1/dollar", params={"start_date": "2025-01-15"})).json()

    assert {r["dollar_type"] for r in by_type["data"]} == {"BLUE"}
    assert by_type["metadata"]["filtered_by"]["dollar_type"] == "BLUE"
    assert by_date["metadata"]["count"] == 2


async def test_unknown_type_rejected(client, seeded):
    res = await client.get("/api/v1/dollar", params={"type": "EURO"})

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_PARAMETER"


async def test_csv_export(client, seeded):
    res = await client.get("/api/v1/dollar", params={"format": "csv"})

    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/csv")
    assert "dollar_rates.csv" in res.headers["content-disposition"]
    assert res.content.startswith(b"\xef\xbb\xbf")
    header = res.content.decode("utf-8-sig").splitlines()[0]
    assert header.startswith("date,dollar_type,buy_price,sell_price,spread")


async def test_csv_without_rows_is_404(client):
    res = await client.get("/api/v1/dollar", params={"format": "csv"})

    assert res.status_code == 404
    assert res.json()["error"]["code"] == "NO_DATA"


async def test_latest_per_type(client, seeded):
    res = await client.get("/api/v1/dollar/latest")

    assert res.status_code == 200
    rows = res.json()
    assert [r["dollar_type"] for r in rows] == ["BLUE", "OFICIAL"]
    assert rows[0]["buy_price"] == 1200.0


async def test_latest_single_type_returns_object(client, seeded):
    res = await client.get("/api/v1/dollar/latest", params={"type": "BLUE"})

    assert res.status_code == 200
    assert res.json()["sell_price"] == 1220.0


async def test_latest_without_data_is_404(client):
    res = await client.get("/api/v1/dollar/latest")

    assert res.status_code == 404


async def test_metadata(client, seeded):
    body = (await client.get("/api/v1/dollar/metadata")).json()

    assert body["total_records"] == 3
    assert body["date_range"]["days_count"] == 2
    assert "BLUE" in [t["type"] for t in body["available_types"]]
