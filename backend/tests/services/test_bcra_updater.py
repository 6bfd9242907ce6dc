"""BCRA Updater — CER/UVA recent values and backfill, upserting on date."""

from datetime import date

from sqlalchemy import select

from app.core.domain_types import BcraIndex
from app.models.bcra_index import Cer, Uva
from app.services.bcra_updater import backfill_bcra_indices, update_bcra_indices
from tests.services.fake_providers import FakeIndexSource


def _source(cer_value=500.0):
    return FakeIndexSource({
        BcraIndex.CER: [
            {"date": date(2025, 1, 14), "value": 499.0},
            {"date": date(2025, 1, 15), "value": cer_value},
        ],
        BcraIndex.UVA: [{"date": date(2025, 1, 15), "value": 1300.0}],
    })


async def test_update_inserts_both_indices(test_db):
    results = await update_bcra_indices(test_db, _source())

    assert results["cer"].inserted == 2
    assert results["uva"].inserted == 1
    assert len((await test_db.execute(select(Cer.id))).all()) == 2
    assert len((await test_db.execute(select(Uva.id))).all()) == 1


async def test_update_refreshes_revised_values(test_db):
    """A value the BCRA revised replaces the stored one."""
    await update_bcra_indices(test_db, _source())
    results = await update_bcra_indices(test_db, _source(cer_value=501.5))

    assert results["cer"].inserted == 0
    assert results["cer"].updated == 2
    value = (await test_db.execute(
        select(Cer.value).where(Cer.date == date(2025, 1, 15)),
    )).scalar_one()
    assert value == 501.5


async def test_backfill_reports_range_per_index(test_db):
    source = _source()
    summary = await backfill_bcra_indices(
        test_db, source, [BcraIndex.CER], date(2025, 1, 1), date(2025, 1, 31),
    )

    assert summary["CER"]["fetched"] == 2
    assert summary["CER"]["inserted"] == 2
    assert summary["CER"]["date_range"] == {"from": "2025-01-14", "to": "2025-01-15"}
    assert "UVA" not in summary
    assert source.calls[0] == ("all", BcraIndex.CER, date(2025, 1, 1), date(2025, 1, 31))


async def test_backfill_empty_series(test_db):
    summary = await backfill_bcra_indices(test_db, FakeIndexSource(), [BcraIndex.UVA])
    assert summary["UVA"] == {"fetched": 0, "inserted": 0, "updated": 0, "date_range": None}
