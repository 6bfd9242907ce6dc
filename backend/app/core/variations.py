"""Percentage variations for monthly and quarterly series.

Invariants:
    - pct_change returns None when either side is missing or the base is zero
    - Monthly series are matched by calendar month, not by row position,
      so gaps in the series yield None instead of a wrong comparison
    - Input rows are never mutated; enriched copies are returned
"""

from collections.abc import Iterable, Sequence
from datetime import date


def pct_change(
    current: float | None, previous: float | None, digits: int = 2,
) -> float | None:
    if current is None or previous is None or previous == 0:
        return None
    return round((current - previous) / previous * 100, digits)


def shift_months(d: date, months: int) -> date:
    """First day of the month `months` away from d."""
    index = d.year * 12 + (d.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def _month_key(d: date) -> tuple[int, int]:
    return d.year, d.month


def attach_monthly_variations(
    rows: Iterable[dict],
    value_key: str,
    group_keys: Sequence[str] = (),
    date_key: str = "date",
    accumulated: bool = False,
) -> list[dict]:
    """Add monthly_pct_change and yearly_pct_change (and optionally
    accumulated_pct_change vs previous December) to each row.

    Rows are grouped by group_keys so several series can be enriched at once.
    """
    rows = list(rows)
    lookup: dict[tuple, float | None] = {}
    for row in rows:
        group = tuple(row.get(k) for k in group_keys)
        lookup[(group, _month_key(row[date_key]))] = row.get(value_key)

    enriched = []
    for row in rows:
        group = tuple(row.get(k) for k in group_keys)
        d = row[date_key]
        value = row.get(value_key)
        out = dict(row)
        out["monthly_pct_change"] = pct_change(
            value, lookup.get((group, _month_key(shift_months(d, -1)))),
        )
        out["yearly_pct_change"] = pct_change(
            value, lookup.get((group, _month_key(shift_months(d, -12)))),
        )
        if accumulated:
            out["accumulated_pct_change"] = pct_change(
                value, lookup.get((group, (d.year - 1, 12))),
            )
        enriched.append(out)
    return enriched


def _quarter_key(d: date) -> tuple[int, int]:
    return d.year, (d.month - 1) // 3 + 1


def _previous_quarter(key: tuple[int, int]) -> tuple[int, int]:
    year, quarter = key
    return (year - 1, 4) if quarter == 1 else (year, quarter - 1)


def attach_quarterly_variations(
    rows: Iterable[dict],
    indicators: Sequence[str],
    group_keys: Sequence[str],
    date_key: str = "date",
) -> list[dict]:
    """Add `<indicator>_qtq` and `<indicator>_yoy` differences in percentage points.

    Labor indicators are already rates, so variations are differences, not ratios.
    """
    rows = list(rows)
    lookup: dict[tuple, dict] = {}
    for row in rows:
        group = tuple(row.get(k) for k in group_keys)
        lookup[(group, _quarter_key(row[date_key]))] = row

    enriched = []
    for row in rows:
        group = tuple(row.get(k) for k in group_keys)
        key = _quarter_key(row[date_key])
        prev_q = lookup.get((group, _previous_quarter(key)))
        prev_y = lookup.get((group, (key[0] - 1, key[1])))
        out = dict(row)
        for name in indicators:
            value = row.get(name)
            out[f"{name}_qtq"] = _diff(value, prev_q.get(name) if prev_q else None)
            out[f"{name}_yoy"] = _diff(value, prev_y.get(name) if prev_y else None)
        enriched.append(out)
    return enriched


def _diff(current: float | None, previous: float | None) -> float | None:
    if current is None or previous is None:
        return None
    return round(current - previous, 2)
