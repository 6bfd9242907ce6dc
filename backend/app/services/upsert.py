"""Natural-key reconciliation: look up existing rows, insert new ones, optionally refresh.

Invariants:
    - A row is identified only by its natural key columns (date, optionally plus a
      secondary key); surrogate ids never take part in matching
    - Re-running with the same input inserts nothing: ON CONFLICT on the natural key
    - Existence is checked in batches of BATCH_SIZE keys
    - Timestamps in keys are compared in UTC

Design Decisions:
    - Dialect insert (postgresql / sqlite) so the same statement runs in production and tests
    - The lookup is what produces the inserted / updated / skipped counters reported by cron
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import DatabaseError
from app.core.periods import as_utc

logger = logging.getLogger(__name__)

BATCH_SIZE = 100
INSERT_CHUNK = 500

_DIALECT_INSERT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


@dataclass
class UpsertResult:
    inserted: int = 0
    updated: int = 0
    skipped: int = 0

    @property
    def processed(self) -> int:
        return self.inserted + self.updated


def dialect_insert(session: AsyncSession, model):
    name = session.get_bind().dialect.name
    factory = _DIALECT_INSERT.get(name)
    if factory is None:
        raise DatabaseError(f"Upsert not supported on dialect {name}", "upsert")
    return factory(model)


def _normalize(value):
    return as_utc(value) if isinstance(value, datetime) else value


def natural_key(row, key_columns: tuple[str, ...]) -> tuple:
    getter = row.get if isinstance(row, dict) else lambda c: getattr(row, c)
    return tuple(_normalize(getter(c)) for c in key_columns)


async def existing_keys(
    session: AsyncSession, model, key_columns: tuple[str, ...], rows: list[dict],
) -> set[tuple]:
    """Natural keys from `rows` that are already stored."""
    lead = key_columns[0]
    values = sorted({row[lead] for row in rows}, key=str)
    columns = [getattr(model, c) for c in key_columns]
    found: set[tuple] = set()
    for i in range(0, len(values), BATCH_SIZE):
        batch = values[i:i + BATCH_SIZE]
        result = await session.execute(
            select(*columns).where(getattr(model, lead).in_(batch)),
        )
        found.update(tuple(_normalize(v) for v in r) for r in result.all())
    return found


def dedupe(rows: list[dict], key_columns: tuple[str, ...]) -> list[dict]:
    """Last row wins for a repeated natural key."""
    by_key: dict[tuple, dict] = {}
    for row in rows:
        by_key[natural_key(row, key_columns)] = row
    return list(by_key.values())


async def upsert_rows(
    session: AsyncSession,
    model,
    rows: list[dict],
    key_columns: tuple[str, ...],
    update_columns: tuple[str, ...] = (),
) -> UpsertResult:
    """Insert unseen natural keys; with update_columns, also refresh existing ones.

    Does not commit: the caller owns the transaction.
    """
    if not rows:
        return UpsertResult()
    rows = dedupe(rows, key_columns)
    stored = await existing_keys(session, model, key_columns, rows)
    new_rows = [r for r in rows if natural_key(r, key_columns) not in stored]
    result = UpsertResult(inserted=len(new_rows))

    stmt = dialect_insert(session, model)
    if update_columns:
        stmt = stmt.on_conflict_do_update(
            index_elements=list(key_columns),
            set_={c: stmt.excluded[c] for c in update_columns},
        )
        payload = rows
        result.updated = len(rows) - len(new_rows)
    else:
        stmt = stmt.on_conflict_do_nothing(index_elements=list(key_columns))
        payload = new_rows
        result.skipped = len(rows) - len(new_rows)

    for i in range(0, len(payload), INSERT_CHUNK):
        await session.execute(stmt, payload[i:i + INSERT_CHUNK])
    return result
