"""Dollar Updater: ingest dolarapi.com quotes and backfill missing days.

Invariants:
    - Every quote goes through plan_quote_update; this module only executes the plan
    - Inserts use the (date, dollar_type) natural key, so a repeated run adds nothing
    - One failing dollar type is recorded in errors and does not stop the others

Design Decisions:
    - Counters mirror the cron response: new_records, intraday_updates,
      duplicates_skipped, replicated_records
    - Backfill reuses the current quote for past days without data, stamped at 12:00 UTC
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dollar_rules import (
    LastRecord, QuoteAction, backfill_timestamp, plan_quote_update,
)
from app.core.domain_types import DataSource
from app.core.errors import ArgenStatsError, ExternalSourceError
from app.core.periods import as_utc, local_day_bounds, today_in_argentina
from app.core.source_protocols import QuoteSource
from app.models.dollar_rate import DollarRate
from app.services.upsert import upsert_rows

logger = logging.getLogger(__name__)

KEY = ("date", "dollar_type")


@dataclass
class DollarUpdateSummary:
    new_records: int = 0
    intraday_updates: int = 0
    duplicates_skipped: int = 0
    replicated_records: int = 0
    processed_types: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        return (
            f"{self.new_records} nuevos, {self.replicated_records} replicados, "
            f"{self.duplicates_skipped} duplicados omitidos"
        )


async def _last_record(db: AsyncSession, dollar_type: str) -> LastRecord | None:
    row = (await db.execute(
        select(DollarRate.date, DollarRate.updated_at)
        .where(DollarRate.dollar_type == dollar_type)
        .order_by(DollarRate.date.desc())
        .limit(1),
    )).first()
    if row is None:
        return None
    return LastRecord(
        date=as_utc(row.date),
        updated_at=as_utc(row.updated_at) if row.updated_at else None,
    )


async def _has_record_on(db: AsyncSession, dollar_type: str, day: date) -> bool:
    start, end = local_day_bounds(day)
    found = await db.execute(
        select(DollarRate.id)
        .where(
            DollarRate.dollar_type == dollar_type,
            DollarRate.date >= start,
            DollarRate.date < end,
        )
        .limit(1),
    )
    return found.first() is not None


async def update_dollar_rates(
    db: AsyncSession, source: QuoteSource, now: datetime | None = None,
) -> DollarUpdateSummary:
    now = now or datetime.now(timezone.utc)
    summary = DollarUpdateSummary()
    quotes = await source.fetch_quotes()
    logger.info(
        f"Processing {len(quotes)} dollar quotes",
        extra={"data_source": DataSource.DOLARAPI.value, "records": len(quotes)},
    )
    today = today_in_argentina(now)

    for quote in quotes:
        dollar_type = quote.dollar_type.value
        try:
            last = await _last_record(db, dollar_type)
            has_today = await _has_record_on(db, dollar_type, today)
            plan = plan_quote_update(quote, last, now, has_record_today=has_today)

            if plan.action in (QuoteAction.SKIP_DUPLICATE, QuoteAction.SKIP_REPLICATED):
                summary.duplicates_skipped += 1
                continue

            result = await upsert_rows(db, DollarRate, [{
                "date": as_utc(plan.record_date),
                "dollar_type": dollar_type,
                "buy_price": quote.buy_price,
                "sell_price": quote.sell_price,
                "updated_at": as_utc(plan.record_updated_at),
            }], KEY)
            if not result.inserted:
                summary.duplicates_skipped += 1
                continue
            if plan.action == QuoteAction.REPLICATE:
                summary.replicated_records += 1
            else:
                summary.new_records += 1
                if plan.action == QuoteAction.INSERT_INTRADAY:
                    summary.intraday_updates += 1
            summary.processed_types.append(dollar_type)
        except ArgenStatsError as e:
            logger.warning(
                f"Dollar type failed: {e.message}",
                extra={"dollar_type": dollar_type, "error_code": e.code},
            )
            summary.errors.append(f"{dollar_type}: {e.message}")

    await db.commit()
    logger.info(
        f"Dollar update finished: {summary.message}",
        extra={"data_source": DataSource.DOLARAPI.value, "records": summary.new_records},
    )
    return summary


async def backfill_dollar_rates(
    db: AsyncSession,
    source: QuoteSource,
    days: int = 30,
    dry_run: bool = False,
    now: datetime | None = None,
) -> dict:
    """Insert the current quote for each of the last `days` days lacking a record."""
    now = now or datetime.now(timezone.utc)
    quotes = await source.fetch_quotes()
    if not quotes:
        raise ExternalSourceError("No quotes available to backfill", DataSource.DOLARAPI.value)

    today = today_in_argentina(now)
    details = []
    inserted = skipped = 0
    for offset in range(days, 0, -1):
        day = today - timedelta(days=offset)
        day_detail = {"date": day.isoformat(), "inserted": [], "skipped": []}
        for quote in quotes:
            dollar_type = quote.dollar_type.value
            if await _has_record_on(db, dollar_type, day):
                day_detail["skipped"].append(dollar_type)
                skipped += 1
                continue
            if not dry_run:
                stamp = backfill_timestamp(day)
                await upsert_rows(db, DollarRate, [{
                    "date": stamp,
                    "dollar_type": dollar_type,
                    "buy_price": quote.buy_price,
                    "sell_price": quote.sell_price,
                    "updated_at": stamp,
                }], KEY)
            day_detail["inserted"].append(dollar_type)
            inserted += 1
        details.append(day_detail)

    if not dry_run:
        await db.commit()
    logger.info(
        f"Dollar backfill: {inserted} inserted, {skipped} skipped (dry_run={dry_run})",
        extra={"data_source": DataSource.DOLARAPI.value, "records": inserted},
    )
    return {
        "success": True,
        "dry_run": dry_run,
        "days": days,
        "summary": {
            "records_inserted": inserted,
            "records_skipped": skipped,
            "types": [q.dollar_type.value for q in quotes],
        },
        "details": details,
    }
