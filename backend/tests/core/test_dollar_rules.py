"""Dollar Rules — quote ingestion decisions.

Invariants:
    - Same provider timestamp as the last record is a duplicate (except OFICIAL/MAYORISTA)
    - Today's quotes insert; yesterday's quotes replicate once per local day
"""

from datetime import date, datetime, timezone

from app.core.dollar_rules import (
    LastRecord, Quote, QuoteAction, backfill_timestamp, map_dollar_type,
    parse_provider_timestamp, plan_quote_update, spread,
)
from app.core.domain_types import DollarType

NOW = datetime(2025, 1, 15, 15, 0, tzinfo=timezone.utc)          # 12:00 local
TODAY_QUOTE = datetime(2025, 1, 15, 14, 0, tzinfo=timezone.utc)  # 11:00 local
YESTERDAY_QUOTE = datetime(2025, 1, 14, 20, 0, tzinfo=timezone.utc)


def _quote(dollar_type=DollarType.BLUE, updated_at=TODAY_QUOTE):
    return Quote(dollar_type, 1200.0, 1220.0, updated_at)


def test_map_dollar_type():
    assert map_dollar_type("contadoconliqui") == DollarType.CCL
    assert map_dollar_type("Bolsa") == DollarType.MEP
    assert map_dollar_type("lunar") is None


def test_parse_provider_timestamp_z_suffix():
    assert parse_provider_timestamp("2025-01-15T14:00:00Z") == TODAY_QUOTE


def test_same_timestamp_is_duplicate():
    last = LastRecord(date=TODAY_QUOTE, updated_at=TODAY_QUOTE)
    assert plan_quote_update(_quote(), last, NOW).action == QuoteAction.SKIP_DUPLICATE


def test_oficial_is_never_duplicate_and_uses_now():
    last = LastRecord(date=TODAY_QUOTE, updated_at=TODAY_QUOTE)
    plan = plan_quote_update(_quote(DollarType.OFICIAL), last, NOW)
    assert plan.action == QuoteAction.INSERT_INTRADAY
    assert plan.record_date == NOW


def test_first_quote_of_day_is_new_day():
    last = LastRecord(date=YESTERDAY_QUOTE, updated_at=YESTERDAY_QUOTE)
    plan = plan_quote_update(_quote(), last, NOW)
    assert plan.action == QuoteAction.INSERT_NEW_DAY
    assert plan.record_date == TODAY_QUOTE


def test_no_previous_record_is_new_day():
    assert plan_quote_update(_quote(), None, NOW).action == QuoteAction.INSERT_NEW_DAY


def test_second_quote_same_day_is_intraday():
    earlier = datetime(2025, 1, 15, 13, 0, tzinfo=timezone.utc)
    last = LastRecord(date=earlier, updated_at=earlier)
    assert plan_quote_update(_quote(), last, NOW).action == QuoteAction.INSERT_INTRADAY


def test_stale_quote_replicates_once_per_day():
    quote = _quote(updated_at=YESTERDAY_QUOTE)
    last = LastRecord(date=datetime(2025, 1, 13, 20, 0, tzinfo=timezone.utc), updated_at=None)
    plan = plan_quote_update(quote, last, NOW)
    assert plan.action == QuoteAction.REPLICATE
    assert plan.record_date == NOW
    again = plan_quote_update(quote, last, NOW, has_record_today=True)
    assert again.action == QuoteAction.SKIP_REPLICATED


def test_spread_percent():
    assert spread(100.0, 105.0) == 5.0
    assert spread(0, 5.0) is None
    assert spread(None, 5.0) is None


def test_backfill_timestamp_is_noon_utc():
    assert backfill_timestamp(date(2025, 1, 10)) == datetime(2025, 1, 10, 12, 0, tzinfo=timezone.utc)
