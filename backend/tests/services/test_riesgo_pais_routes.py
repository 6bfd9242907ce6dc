"""Riesgo País Routes — daily closings, period stats and monthly/yearly variations.

Invariants:
    - Several readings on one local day collapse to the last one
    - The first closing of a window still carries its change against the day before
"""

import pytest

from app.models.embi_risk import EmbiRisk
from tests.services.fake_providers import utc

CUSTOM = {"type": "custom", "date_from": "2025-01-07", "date_to": "2025-01-10"}


@pytest.fixture
async def seeded(test_db):
    readings = [
        (utc(2024, 1, 10, 21, 0), 1900.0),
        (utc(2024, 12, 10, 21, 0), 750.0),
        (utc(2025, 1, 6, 21, 0), 700.0),
        (utc(2025, 1, 7, 21, 0), 710.0),
        (utc(2025, 1, 8, 21, 0), 705.0),
        (utc(2025, 1, 9, 21, 0), 690.0),
        (utc(2025, 1, 10, 15, 0), 695.0),
        (utc(2025, 1, 10, 21, 0), 680.0),
    ]
    test_db.add_all([
        EmbiRisk(external_id=str(i), closing_date=moment, value=value)
        for i, (moment, value) in enumerate(readings)
    ])
    await test_db.commit()


async def test_custom_range_newest_first(client, seeded):
    res = await client.get("/api/v1/riesgo-pais", params=CUSTOM)

    assert res.status_code == 200
    body = res.json()
    dates = [d["closing_date"] for d in body["data"]]
    assert dates == ["2025-01-10", "2025-01-09", "2025-01-08", "2025-01-07"]
    assert body["data"][0]["closing_value"] == 680.0
    assert body["data"][-1]["change_value"] == 10.0
    assert body["metadata"]["total_available"] == 4
    assert body["metadata"]["range"] == {"from": "2025-01-07", "to": "2025-01-10"}


async def test_stats_over_window(client, seeded):
    stats = (await client.get("/api/v1/riesgo-pais", params=CUSTOM)).json()["stats"]

    assert stats["latest_value"] == 680.0
    assert stats["max_value"] == 710.0
    assert stats["period_change"]["absolute"] == -30.0


async def test_limit_then_ascending_order(client, seeded):
    """limit keeps the most recent closings; order only flips their presentation."""
    body = (await client.get(
        "/api/v1/riesgo-pais", params={**CUSTOM, "limit": 2, "order": "asc"},
    )).json()

    assert [d["closing_date"] for d in body["data"]] == ["2025-01-09", "2025-01-10"]
    assert body["metadata"]["total_available"] == 4


async def test_custom_requires_both_dates(client, seeded):
    res = await client.get(
        "/api/v1/riesgo-pais", params={"type": "custom", "date_from": "2025-01-07"},
    )

    assert res.status_code == 400


async def test_custom_inverted_range_is_400(client, seeded):
    res = await client.get(
        "/api/v1/riesgo-pais",
        params={"type": "custom", "date_from": "2025-01-10", "date_to": "2025-01-07"},
    )

    assert res.status_code == 400
    assert res.json()["error"]["context"] == {"parameter": "date_from"}


async def test_limit_out_of_bounds(client, seeded):
    res = await client.get("/api/v1/riesgo-pais", params={**CUSTOM, "limit": 0})

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_latest_type(client, seeded):
    body = (await client.get("/api/v1/riesgo-pais", params={"type": "latest"})).json()

    assert [d["closing_value"] for d in body["data"]] == [680.0]
    assert "description" in body["metadata"]["range"]


async def test_with_variations(client, seeded):
    res = await client.get("/api/v1/riesgo-pais/with-variations")

    assert res.status_code == 200
    data = res.json()["data"]
    assert data["closing_date"] == "2025-01-10"
    assert data["monthly_variation"]["reference_date"] == "2024-12-10"
    assert data["monthly_variation"]["absolute"] == -70.0
    assert data["monthly_variation"]["percentage"] == -9.33
    assert data["yearly_variation"]["reference_value"] == 1900.0
    assert data["yearly_variation"]["percentage"] == -64.21


async def test_with_variations_without_data_is_404(client):
    res = await client.get("/api/v1/riesgo-pais/with-variations")

    assert res.status_code == 404
