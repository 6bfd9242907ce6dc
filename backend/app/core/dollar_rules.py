"""Dollar Rules: pure decisions for dollar quote ingestion and presentation.

Invariants:
    - A provider quote whose timestamp equals the last stored updated_at is a duplicate,
      except OFICIAL and MAYORISTA which are always recorded at the current time
    - A quote dated today (Argentina time) is inserted; an intraday update when the
      previous record is from the same local day
    - A quote dated before today means the market is closed: at most one continuity
      record per type and local day
"""

from dataclasses import dataclass
from datetime import datetime, time, timezone
from enum import Enum

from app.core.domain_types import DollarType
from app.core.periods import is_same_local_day, to_local

DOLLAR_TYPE_MAP: dict[str, DollarType] = {
    "oficial": DollarType.OFICIAL,
    "blue": DollarType.BLUE,
    "bolsa": DollarType.MEP,
    "contadoconliqui": DollarType.CCL,
    "mayorista": DollarType.MAYORISTA,
    "cripto": DollarType.CRYPTO,
    "tarjeta": DollarType.TARJETA,
}

DOLLAR_DESCRIPTIONS: dict[DollarType, str] = {
    DollarType.CCL: "Contado con Liquidación",
    DollarType.MEP: "Mercado Electrónico de Pagos (Bolsa)",
    DollarType.CRYPTO: "Dólar Cripto",
    DollarType.BLUE: "Dólar Blue (informal)",
    DollarType.OFICIAL: "Dólar Oficial",
    DollarType.MAYORISTA: "Dólar Mayorista",
    DollarType.TARJETA: "Dólar Tarjeta/Turista",
}

ALWAYS_CURRENT_TIMESTAMP = frozenset({DollarType.OFICIAL, DollarType.MAYORISTA})


class QuoteAction(str, Enum):
    SKIP_DUPLICATE = "skip_duplicate"
    INSERT_NEW_DAY = "insert_new_day"
    INSERT_INTRADAY = "insert_intraday"
    REPLICATE = "replicate"
    SKIP_REPLICATED = "skip_replicated"


@dataclass(frozen=True)
class Quote:
    """A provider quote already mapped to our dollar type."""
    dollar_type: DollarType
    buy_price: float | None
    sell_price: float | None
    updated_at: datetime


@dataclass(frozen=True)
class LastRecord:
    date: datetime
    updated_at: datetime | None


@dataclass(frozen=True)
class QuotePlan:
    action: QuoteAction
    record_date: datetime | None = None
    record_updated_at: datetime | None = None


def map_dollar_type(casa: str) -> DollarType | None:
    return DOLLAR_TYPE_MAP.get((casa or "").strip().lower())


def parse_provider_timestamp(text: str) -> datetime:
    """dolarapi timestamps are ISO 8601, usually with a Z suffix."""
    moment = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def _same_instant(a: datetime | None, b: datetime) -> bool:
    if a is None:
        return False
    if a.tzinfo is None:
        a = a.replace(tzinfo=timezone.utc)
    return a == b


def plan_quote_update(
    quote: Quote,
    last_record: LastRecord | None,
    now: datetime,
    has_record_today: bool = False,
) -> QuotePlan:
    always_now = quote.dollar_type in ALWAYS_CURRENT_TIMESTAMP
    if (
        last_record is not None
        and not always_now
        and _same_instant(last_record.updated_at, quote.updated_at)
    ):
        return QuotePlan(QuoteAction.SKIP_DUPLICATE)

    if is_same_local_day(quote.updated_at, now):
        stamp = now if always_now else quote.updated_at
        intraday = last_record is not None and is_same_local_day(last_record.date, quote.updated_at)
        return QuotePlan(
            QuoteAction.INSERT_INTRADAY if intraday else QuoteAction.INSERT_NEW_DAY,
            record_date=stamp,
            record_updated_at=stamp,
        )

    if has_record_today:
        return QuotePlan(QuoteAction.SKIP_REPLICATED)
    return QuotePlan(QuoteAction.REPLICATE, record_date=now, record_updated_at=now)


def spread(buy: float | None, sell: float | None) -> float | None:
    """Sell over buy premium in percent."""
    if not buy or sell is None:
        return None
    return round((sell - buy) / buy * 100, 2)


def backfill_timestamp(day) -> datetime:
    """Backfilled quotes are stamped at 12:00 UTC of their day."""
    return datetime.combine(day, time(12, 0), tzinfo=timezone.utc)


def local_date(moment: datetime):
    return to_local(moment).date()
