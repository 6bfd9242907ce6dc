"""CER / UVA Routes — query modes, paging and variations over the full series."""

from datetime import date

import pytest

from app.models.bcra_index import Cer, Uva


@pytest.fixture
async def seeded(test_db):
    test_db.add_all([
        Cer(date=date(2024, 1, 15), value=100.0),
        Cer(date=date(2024, 12, 15), value=110.0),
        Cer(date=date(2025, 1, 14), value=120.0),
        Cer(date=date(2025, 1, 15), value=121.0),
        Uva(date=date(2025, 1, 15), value=1300.0),
    ])
    await test_db.commit()


async def test_historical_is_default(client, seeded):
    res = await client.get("/api/v1/cer")

    assert res.status_code == 200
    assert res.headers["cache-control"] == "public, max-age=300, stale-while-revalidate=600"
    body = res.json()
    assert body["metadata"]["type"] == "historical"
    assert body["pagination"]["total_records"] == 4
    newest = body["data"][0]
    assert newest["date"] == "2025-01-15"
    assert newest["monthly_pct_change"] == 10.0
    assert newest["yearly_pct_change"] == 21.0
    assert newest["daily_pct_change"] == 0.8333


async def test_paging_keeps_variations(client, seeded):
    """The second page is sliced after variations are computed."""
    body = (await client.get("/api/v1/cer", params={"limit": 2, "page": 2})).json()

    assert [p["date"] for p in body["data"]] == ["2024-12-15", "2024-01-15"]
    assert body["data"][0]["yearly_pct_change"] is None
    assert body["data"][0]["daily_pct_change"] == 10.0
    assert body["pagination"]["has_more"] is False
    assert body["pagination"]["has_previous"] is True


async def test_latest(client, seeded):
    body = (await client.get("/api/v1/cer", params={"type": "latest"})).json()

    assert body["data"]["value"] == 121.0
    assert body["metadata"]["index"] == "CER"


async def test_specific_date(client, seeded):
    found = await client.get("/api/v1/cer", params={"type": "specific-date", "date": "2024-12-15"})
    missing = await client.get("/api/v1/cer", params={"type": "specific-date", "date": "2024-12-16"})
    no_param = await client.get("/api/v1/cer", params={"type": "specific-date"})

    assert found.json()["data"]["value"] == 110.0
    assert missing.status_code == 404
    assert no_param.status_code == 400


async def test_range_with_stats(client, seeded):
    body = (await client.get("/api/v1/cer", params={
        "type": "range", "start_date": "2025-01-01", "end_date": "2025-01-31",
    })).json()

    assert [p["value"] for p in body["data"]] == [121.0, 120.0]
    assert body["stats"]["latest_value"] == 121.0
    assert body["metadata"]["count"] == 2


async def test_range_requires_both_dates(client, seeded):
    res = await client.get("/api/v1/cer", params={"type": "range", "start_date": "2025-01-01"})

    assert res.status_code == 400


async def test_uva_router(client, seeded):
    body = (await client.get("/api/v1/uva", params={"type": "latest"})).json()

    assert body["data"]["value"] == 1300.0
    assert body["metadata"]["index"] == "UVA"


async def test_csv_export(client, seeded):
    res = await client.get("/api/v1/cer", params={"format": "csv"})

    assert res.headers["content-disposition"] == "attachment; filename=cer.csv"
    lines = res.content.decode("utf-8-sig").splitlines()
    assert lines[0] == "date,value,daily_pct_change,monthly_pct_change,yearly_pct_change"
    assert len(lines) == 5
