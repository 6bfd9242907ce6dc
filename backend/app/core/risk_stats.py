"""Riesgo país daily closings, period windows and summary statistics.

Invariants:
    - One closing per Argentina calendar day: the last reading of that day
    - change_value / change_percentage are relative to the previous available day
    - Stats expect points ordered newest first; period_change compares first vs last
"""

from datetime import date, timedelta

from app.core.domain_types import RiskPeriod
from app.core.errors import InvalidParameterError
from app.core.periods import to_local
from app.core.variations import pct_change

_DAYS_BACK = {
    RiskPeriod.LAST_7_DAYS: 7,
    RiskPeriod.LAST_30_DAYS: 30,
    RiskPeriod.LAST_90_DAYS: 90,
}


def daily_closings(readings: list[dict]) -> list[dict]:
    """[{closing_date (datetime), value}] -> [{closing_date (date), closing_value, change_*}] ascending."""
    last_of_day: dict[date, tuple] = {}
    for r in readings:
        local = to_local(r["closing_date"])
        current = last_of_day.get(local.date())
        if current is None or local >= current[0]:
            last_of_day[local.date()] = (local, r["value"])

    closings = []
    previous = None
    for day in sorted(last_of_day):
        value = last_of_day[day][1]
        closings.append({
            "closing_date": day,
            "closing_value": value,
            "change_value": round(value - previous, 2) if previous is not None else None,
            "change_percentage": pct_change(value, previous),
        })
        previous = value
    return closings


def risk_period_range(
    period: RiskPeriod,
    today: date,
    date_from: date | None = None,
    date_to: date | None = None,
) -> tuple[date | None, date | None]:
    """Inclusive (from, to) window; (None, None) for latest."""
    if period == RiskPeriod.LATEST:
        return None, None
    if period in _DAYS_BACK:
        return today - timedelta(days=_DAYS_BACK[period]), today
    if period == RiskPeriod.YEAR_TO_DATE:
        return date(today.year, 1, 1), today
    if period == RiskPeriod.LAST_YEAR:
        return date(today.year - 1, 1, 1), date(today.year - 1, 12, 31)
    if date_from is None or date_to is None:
        raise InvalidParameterError(
            'Para type="custom" se requieren date_from y date_to', "date_from",
        )
    if date_from > date_to:
        raise InvalidParameterError("date_from debe ser anterior o igual a date_to", "date_from")
    return date_from, date_to


def describe_range(period: RiskPeriod, start: date | None, end: date | None) -> dict:
    if period == RiskPeriod.LATEST:
        return {"description": "Último valor disponible"}
    return {"from": start.isoformat(), "to": end.isoformat()}


def risk_stats(points: list[dict]) -> dict | None:
    """Summary over closings ordered newest first."""
    values = [p["closing_value"] for p in points if p["closing_value"] is not None]
    if not values:
        return None
    changes = [p["change_percentage"] for p in points if p.get("change_percentage") is not None]
    latest, oldest = points[0], points[-1]
    increases = [c for c in changes if c > 0]
    decreases = [c for c in changes if c < 0]
    return {
        "latest_value": latest["closing_value"],
        "latest_date": latest["closing_date"].isoformat(),
        "latest_change": latest.get("change_percentage"),
        "min_value": min(values),
        "max_value": max(values),
        "avg_value": round(sum(values) / len(values), 2),
        "total_records": len(points),
        "period_change": {
            "absolute": round(latest["closing_value"] - oldest["closing_value"], 2),
            "percentage": pct_change(latest["closing_value"], oldest["closing_value"]),
        },
        "volatility": {
            "avg_daily_change": round(sum(changes) / len(changes), 2),
            "max_daily_increase": max(increases) if increases else None,
            "max_daily_decrease": min(decreases) if decreases else None,
        } if changes else None,
    }


def reference_in_window(points: list[dict], target: date, days: int = 7) -> dict | None:
    """Most recent closing within [target - days, target + days]."""
    low, high = target - timedelta(days=days), target + timedelta(days=days)
    candidates = [p for p in points if low <= p["closing_date"] <= high]
    return max(candidates, key=lambda p: p["closing_date"]) if candidates else None
