"""EMAE Updater: INDEC workbook ingestion and historical CSV import.

Invariants:
    - emae rows upsert on date; values are refreshed because INDEC revises recent months
    - emae_by_activity rows upsert on (date, economy_sector_code)
    - Imported general rows missing adjusted / trend values are filled from the
      stored original series (centered moving average and Hodrick-Prescott trend)
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import DataSource
from app.core.emae_parser import (
    parse_emae_activity_csv, parse_emae_csv, read_emae_workbook,
)
from app.core.seasonal import MOVING_AVERAGE, deseasonalize, trend_cycle
from app.core.source_protocols import IndecSource
from app.models.emae import Emae, EmaeByActivity
from app.services.upsert import UpsertResult, upsert_rows

logger = logging.getLogger(__name__)

VALUE_COLUMNS = ("original_value", "seasonally_adjusted_value", "cycle_trend_value")


async def update_emae(db: AsyncSession, source: IndecSource) -> UpsertResult:
    content = await source.fetch_emae_workbook()
    records = read_emae_workbook(content)
    logger.info(
        f"Parsed {len(records)} EMAE months",
        extra={"data_source": DataSource.INDEC.value, "records": len(records)},
    )
    result = await upsert_rows(db, Emae, records, ("date",), VALUE_COLUMNS)
    await db.commit()
    return result


def fill_adjusted_values(records: list[dict]) -> list[dict]:
    """Fill missing seasonally adjusted and trend-cycle values in place of None."""
    series = [r for r in records if r.get("original_value") is not None]
    if len(series) < 3:
        return records
    adjusted = {
        p["date"]: p["value"]
        for p in deseasonalize(
            [{"date": r["date"], "value": r["original_value"]} for r in series],
            MOVING_AVERAGE,
        )
    }
    ordered = sorted(series, key=lambda r: r["date"])
    trend = dict(zip(
        (r["date"] for r in ordered),
        trend_cycle([r["original_value"] for r in ordered]),
    ))
    filled = []
    for r in records:
        out = dict(r)
        if out.get("seasonally_adjusted_value") is None:
            out["seasonally_adjusted_value"] = adjusted.get(r["date"])
        if out.get("cycle_trend_value") is None:
            out["cycle_trend_value"] = trend.get(r["date"])
        filled.append(out)
    return filled


async def import_emae_csv(
    db: AsyncSession, csv_text: str, kind: str = "general", fill_adjusted: bool = True,
) -> UpsertResult:
    """Historical CSV import for the general series or activity breakdown."""
    if kind == "activity":
        records = parse_emae_activity_csv(csv_text)
        result = await upsert_rows(
            db, EmaeByActivity, records, ("date", "economy_sector_code"),
            ("economy_sector", "original_value"),
        )
    else:
        records = parse_emae_csv(csv_text)
        if fill_adjusted:
            stored = (await db.execute(
                select(Emae.date, Emae.original_value).where(Emae.original_value.is_not(None)),
            )).all()
            incoming = {r["date"] for r in records}
            context = [
                {"date": d, "original_value": v} for d, v in stored if d not in incoming
            ]
            filled = fill_adjusted_values(context + records)
            records = [r for r in filled if r["date"] in incoming]
        result = await upsert_rows(db, Emae, records, ("date",), VALUE_COLUMNS)
    await db.commit()
    logger.info(
        f"EMAE {kind} import: {result.inserted} inserted, {result.updated} updated",
        extra={"data_source": DataSource.INTERNAL.value, "records": result.processed},
    )
    return result
