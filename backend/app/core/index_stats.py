"""CER / UVA variations, statistics and pagination.

Invariants:
    - daily change compares against the previous stored date
    - monthly / yearly changes compare against the latest stored date on or before
      one month / one year earlier
    - Stats expect points ordered newest first
"""

import bisect
import math
from datetime import date

from app.core.periods import months_back
from app.core.variations import pct_change


def _on_or_before(dates: list[date], target: date) -> int | None:
    idx = bisect.bisect_right(dates, target) - 1
    return idx if idx >= 0 else None


def attach_index_variations(series: list[dict]) -> list[dict]:
    """Enrich [{date, value}] (any order) with daily/monthly/yearly pct changes, ascending."""
    ordered = sorted(series, key=lambda p: p["date"])
    dates = [p["date"] for p in ordered]
    out = []
    for i, point in enumerate(ordered):
        month_idx = _on_or_before(dates, months_back(point["date"], 1))
        year_idx = _on_or_before(dates, months_back(point["date"], 12))
        out.append({
            **point,
            "daily_pct_change": pct_change(point["value"], ordered[i - 1]["value"], 4) if i else None,
            "monthly_pct_change": (
                pct_change(point["value"], ordered[month_idx]["value"], 4)
                if month_idx is not None else None
            ),
            "yearly_pct_change": (
                pct_change(point["value"], ordered[year_idx]["value"], 4)
                if year_idx is not None else None
            ),
        })
    return out


def index_stats(points: list[dict]) -> dict | None:
    values = [p["value"] for p in points if p.get("value") is not None]
    if not values:
        return None
    latest, oldest = points[0], points[-1]
    stats = {
        "latest_value": latest["value"],
        "latest_date": latest["date"].isoformat(),
        "min_value": min(values),
        "max_value": max(values),
        "avg_value": round(sum(values) / len(values), 4),
        "total_records": len(points),
    }
    if "daily_pct_change" in latest:
        stats["latest_daily_change"] = latest["daily_pct_change"]
        stats["latest_monthly_change"] = latest["monthly_pct_change"]
        stats["latest_yearly_change"] = latest["yearly_pct_change"]
    if oldest["value"] and oldest["value"] > 0:
        stats["period_change"] = {
            "absolute": round(latest["value"] - oldest["value"], 4),
            "percentage": pct_change(latest["value"], oldest["value"], 4),
        }
    return stats


def pagination(total: int, page: int, per_page: int) -> dict:
    total_pages = math.ceil(total / per_page) if per_page else 0
    return {
        "current_page": page,
        "per_page": per_page,
        "total_pages": total_pages,
        "total_records": total,
        "has_more": page < total_pages,
        "has_previous": page > 1,
    }
