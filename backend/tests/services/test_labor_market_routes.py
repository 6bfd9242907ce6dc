"""Labor Market Routes — the five views, significance flags and the latest national figure.

Invariants:
    - yoy / qtq are differences in percentage points within one series
    - comparison rows are measured against the national row of the same period
"""

from datetime import date

import pytest

from app.models.labor_market import LaborMarket

NATIONAL = "Total 31 aglomerados"


def _eph(d, period, unemployment, data_type="national", region=NATIONAL):
    return LaborMarket(
        date=d, period=period, data_type=data_type, region=region,
        gender="Total", age_group="Total",
        activity_rate=48.0, employment_rate=44.0, unemployment_rate=unemployment,
    )


@pytest.fixture
async def seeded(test_db):
    test_db.add_all([
        _eph(date(2024, 3, 31), "T1 2024", 7.7),
        _eph(date(2024, 6, 30), "T2 2024", 7.6),
        _eph(date(2025, 3, 31), "T1 2025", 9.0),
        _eph(date(2025, 3, 31), "T1 2025", 8.5, "regional", "GBA"),
    ])
    await test_db.commit()


async def test_temporal_view_with_significance(client, seeded):
    body = (await client.get("/api/v1/labor-market")).json()

    rows = body["data"]
    assert [r["period"] for r in rows] == ["T1 2025", "T2 2024", "T1 2024"]
    newest = rows[0]
    assert newest["unemployment_rate_yoy"] == 1.3
    assert newest["unemployment_rate_qtq"] is None
    assert newest["has_significant_yoy_change"] is True
    assert newest["significant_yoy_indicators"] == ["unemployment_rate"]
    assert rows[1]["unemployment_rate_qtq"] == -0.1
    assert body["metadata"]["view"] == "temporal"


async def test_period_filter(client, seeded):
    body = (await client.get("/api/v1/labor-market", params={"period": "T1 2025"})).json()

    assert body["metadata"]["count"] == 1
    assert body["data"][0]["unemployment_rate"] == 9.0


async def test_latest_view_per_data_type(client, seeded):
    body = (await client.get(
        "/api/v1/labor-market", params={"view": "latest", "data_type": "all"},
    )).json()

    assert sorted(r["data_type"] for r in body["data"]) == ["national", "regional"]
    assert {r["period"] for r in body["data"]} == {"T1 2025"}


async def test_comparison_against_national(client, seeded):
    body = (await client.get("/api/v1/labor-market", params={"view": "comparison"})).json()

    by_region = {r["region"]: r for r in body["data"]}
    assert by_region["GBA"]["unemployment_rate_vs_national"] == -0.5
    assert by_region[NATIONAL]["unemployment_rate_vs_national"] == 0.0


async def test_annual_averages(client, seeded):
    body = (await client.get("/api/v1/labor-market", params={"view": "annual"})).json()

    assert [e["year"] for e in body["data"]] == [2025, 2024]
    assert body["data"][1]["avg_unemployment_rate"] == 7.65
    assert body["data"][1]["quarters"] == 2
    assert body["data"][0]["unemployment_rate_yoy"] == 1.35


async def test_invalid_indicator(client, seeded):
    res = await client.get("/api/v1/labor-market", params={"indicator": "inflation"})

    assert res.status_code == 400


async def test_latest_national(client, seeded):
    res = await client.get("/api/v1/labor-market/latest")

    assert res.headers["cache-control"] == "public, max-age=3600, stale-while-revalidate=7200"
    data = res.json()["data"]
    assert data["period"] == "T1 2025"
    assert data["has_significant_yoy_change"] is True


async def test_latest_unknown_region_is_404(client, seeded):
    res = await client.get("/api/v1/labor-market/latest", params={"region": "Atlántida"})

    assert res.status_code == 404


async def test_metadata(client, seeded):
    body = (await client.get("/api/v1/labor-market/metadata")).json()

    assert body["latest_period"] == "T1 2025"
    assert body["regions"] == ["GBA", NATIONAL]
    assert body["periods"] == ["T1 2024", "T2 2024", "T1 2025"]
