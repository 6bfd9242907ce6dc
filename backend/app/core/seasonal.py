"""Seasonal adjustment and trend-cycle extraction for monthly series.

Invariants:
    - Output has one point per input point, sorted by date
    - Adjusted and trend values are rounded to 1 decimal, original values untouched
    - Unknown methods return the series unadjusted (is_seasonally_adjusted=False)

Design Decisions:
    - x13 is not available in-process; it falls back to the centered moving average
    - Hodrick-Prescott solved directly with numpy.linalg.solve on (I + lambda D'D)
"""

from datetime import date

import numpy as np
import pandas as pd

MOVING_AVERAGE = "moving-average"
RATIO_TO_MOVING_AVERAGE = "ratio-to-moving-average"
X13 = "x13-arima-seats"


def deseasonalize(
    points: list[dict], method: str = MOVING_AVERAGE, window: int = 12,
) -> list[dict]:
    """Seasonally adjust [{date, value}] points.

    Returns [{date, value, original_value, is_seasonally_adjusted, cycle_trend_value}].
    """
    if not points:
        return []
    ordered = sorted(points, key=lambda p: p["date"])
    dates = [p["date"] for p in ordered]
    values = pd.Series([float(p["value"]) for p in ordered])

    if method in (MOVING_AVERAGE, X13):
        return _moving_average(dates, values, window)
    if method == RATIO_TO_MOVING_AVERAGE:
        return _ratio_to_moving_average(dates, values, window)
    return [
        {
            "date": d, "value": v, "original_value": v,
            "is_seasonally_adjusted": False, "cycle_trend_value": None,
        }
        for d, v in zip(dates, values.tolist())
    ]


def _centered_span(window: int) -> int:
    return 2 * (window // 2) + 1


def _moving_average(dates: list[date], values: pd.Series, window: int) -> list[dict]:
    # Edges average whatever part of the span exists.
    smoothed = values.rolling(
        _centered_span(window), center=True, min_periods=1,
    ).mean()
    return [
        {
            "date": d,
            "value": round(float(s), 1),
            "original_value": float(v),
            "is_seasonally_adjusted": True,
            "cycle_trend_value": round(float(s), 1),
        }
        for d, v, s in zip(dates, values, smoothed)
    ]


def _ratio_to_moving_average(
    dates: list[date], values: pd.Series, window: int,
) -> list[dict]:
    # Only full spans count here; edges have no moving average.
    moving = values.rolling(_centered_span(window), center=True).mean()
    ratios = values / moving.replace(0, np.nan)

    months = pd.Series([d.month for d in dates])
    factors = ratios.groupby(months).mean().dropna()
    if not factors.empty:
        factors = factors * window / factors.sum()

    out = []
    for d, v, m in zip(dates, values, moving):
        factor = float(factors.get(d.month, 1.0)) or 1.0
        out.append({
            "date": d,
            "value": round(float(v) / factor, 1),
            "original_value": float(v),
            "is_seasonally_adjusted": True,
            "cycle_trend_value": None if np.isnan(m) else round(float(m), 1),
        })
    return out


def trend_cycle(values: list[float], lam: float = 1600) -> list[float]:
    """Hodrick-Prescott trend of a series. Series of length <= 2 are returned as is."""
    n = len(values)
    if n <= 2:
        return list(values)
    y = np.asarray(values, dtype=float)
    d = np.zeros((n - 2, n))
    for i in range(n - 2):
        d[i, i:i + 3] = (1.0, -2.0, 1.0)
    a = np.eye(n) + lam * (d.T @ d)
    trend = np.linalg.solve(a, y)
    return [round(float(v), 1) for v in trend]
