# auto_insights/stats/temporal.py
"""Trend, changepoint, anomaly and seasonality detection.

All detectors work on the first date column paired with the first numeric
column. Points are ordered by timestamp and the trend regresses value on
the point's rank (0..n-1), so irregular spacing between timestamps is
ignored.
"""
import logging
import math
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from auto_insights.stats.associations import pearson
from auto_insights.stats.coercion import ensure_coerced
from auto_insights.stats.inference import columns_of_type, infer_column_types
from auto_insights.stats.profiler import is_constant, sample_stdev
from auto_insights.types import (
    CellKind,
    Changepoint,
    ColumnType,
    MonthSeasonality,
    Table,
    TrendResult,
    WeekdaySeasonality,
)

logger = logging.getLogger(__name__)

MIN_TREND_POINTS = 3
FLAT_SLOPE_EPSILON = 1e-8
CHANGEPOINT_MARGIN = 3
CHANGEPOINT_MIN_GAIN = 0.30
ANOMALY_Z_THRESHOLD = 3.0
SEASONALITY_STRENGTH = 0.30

Point = Tuple[datetime, float]


def find_time_series_columns(table: Table) -> Optional[Tuple[str, str]]:
    """First date column and first numeric column, or None if either is absent"""
    types = infer_column_types(table)
    dates = columns_of_type(types, ColumnType.DATE)
    nums = columns_of_type(types, ColumnType.NUMBER)
    if not dates or not nums:
        return None
    return dates[0], nums[0]


def time_series_points(table: Table, date_col: str, num_col: str) -> List[Point]:
    """(timestamp, value) pairs with a valid date and a finite number, oldest first"""
    coerced = ensure_coerced(table)
    points = []
    for row in coerced.rows:
        when, value = row[date_col], row[num_col]
        if when.kind is CellKind.DATE and value.kind is CellKind.NUMBER and math.isfinite(value.value):
            points.append((when.value, float(value.value)))
    # stable: equal timestamps keep row order
    return sorted(points, key=lambda p: p[0])


def linear_trend(values: Sequence[float],
                 flat_epsilon: float = FLAT_SLOPE_EPSILON) -> Tuple[float, float, float, str]:
    """OLS of value on index; returns (slope, r, r2, direction)"""
    n = len(values)
    ys = np.asarray(values, dtype=float)
    xs = np.arange(n, dtype=float)
    dx = xs - xs.mean()
    den = float(np.dot(dx, dx))
    slope = float(np.dot(dx, ys - ys.mean())) / den if den else 0.0

    r_xy = pearson(xs, ys)
    r2 = r_xy * r_xy if r_xy is not None else 0.0
    sign = 1.0 if slope > 0 else (-1.0 if slope < 0 else 0.0)
    r = math.sqrt(r2) * sign

    if abs(slope) < flat_epsilon:
        direction = "flat"
    else:
        direction = "up" if slope > 0 else "down"
    return slope, r, r2, direction


def _sse(values: np.ndarray) -> float:
    if len(values) == 0:
        return 0.0
    return float(((values - values.mean()) ** 2).sum())


def detect_changepoint(values: Sequence[float],
                       margin: int = CHANGEPOINT_MARGIN,
                       min_gain: float = CHANGEPOINT_MIN_GAIN) -> Optional[Changepoint]:
    """Best single split of a two-segment piecewise-constant fit.

    Candidate splits run from ``margin`` to ``len - margin`` inclusive; the
    split is reported only when it explains at least ``min_gain`` of the
    total squared error.
    """
    ys = np.asarray(values, dtype=float)
    n = len(ys)
    if is_constant(ys):
        return None
    sse_full = _sse(ys)
    if sse_full == 0:
        return None

    best_gain, best_index = -math.inf, None
    for k in range(margin, n - margin + 1):
        gain = 1 - (_sse(ys[:k]) + _sse(ys[k:])) / sse_full
        if gain > best_gain:
            best_gain, best_index = gain, k

    if best_index is None or best_gain < min_gain:
        return None
    return Changepoint(at_index=best_index, improvement=best_gain)


def count_anomalies(values: Sequence[float],
                    threshold: float = ANOMALY_Z_THRESHOLD) -> int:
    """Points whose global z-score exceeds the threshold"""
    if not values:
        return 0
    mean = float(np.mean(values))
    stdev = sample_stdev(values)
    if stdev == 0:
        return 0
    return sum(1 for v in values if abs((v - mean) / stdev) > threshold)


def first_date_trend(table: Table,
                     min_points: int = MIN_TREND_POINTS,
                     flat_epsilon: float = FLAT_SLOPE_EPSILON,
                     changepoint_margin: int = CHANGEPOINT_MARGIN,
                     changepoint_min_gain: float = CHANGEPOINT_MIN_GAIN,
                     anomaly_threshold: float = ANOMALY_Z_THRESHOLD) -> Optional[TrendResult]:
    """Trend of the first numeric column over the first date column"""
    coerced = ensure_coerced(table)
    pair = find_time_series_columns(coerced)
    if pair is None:
        logger.debug("No date/numeric column pair; skipping trend")
        return None

    date_col, num_col = pair
    points = time_series_points(coerced, date_col, num_col)
    if len(points) < min_points:
        logger.debug(f"Only {len(points)} time points for {num_col}; skipping trend")
        return None

    values = [v for _, v in points]
    slope, r, r2, direction = linear_trend(values, flat_epsilon)

    return TrendResult(
        date_col=date_col,
        num_col=num_col,
        slope=slope,
        r=r,
        r2=r2,
        dir=direction,
        changepoint=detect_changepoint(values, changepoint_margin, changepoint_min_gain),
        anomalies=count_anomalies(values, anomaly_threshold),
    )


def weekday_index(when: datetime) -> int:
    """Day of week with Sunday as 0"""
    return (when.weekday() + 1) % 7


def month_index(when: datetime) -> int:
    """Calendar month with January as 0"""
    return when.month - 1


def _bucket_averages(points: Sequence[Point], bucket) -> Dict[int, float]:
    sums: Dict[int, float] = defaultdict(float)
    counts: Dict[int, int] = defaultdict(int)
    for when, value in points:
        key = bucket(when)
        sums[key] += value
        counts[key] += 1
    return {key: sums[key] / counts[key] for key in sorted(sums)}


def _seasonal_points(table: Table, min_points: int) -> Optional[Tuple[str, str, List[Point]]]:
    coerced = ensure_coerced(table)
    pair = find_time_series_columns(coerced)
    if pair is None:
        return None
    date_col, num_col = pair
    points = time_series_points(coerced, date_col, num_col)
    if len(points) < min_points:
        return None
    return date_col, num_col, points


def weekday_seasonality(table: Table,
                        min_points: int = MIN_TREND_POINTS) -> Optional[WeekdaySeasonality]:
    """Weekday with the highest average value; a single weekday is its own best"""
    found = _seasonal_points(table, min_points)
    if found is None:
        return None
    date_col, num_col, points = found

    averages = _bucket_averages(points, weekday_index)
    best = max(averages, key=lambda k: averages[k])
    return WeekdaySeasonality(
        date_col=date_col,
        num_col=num_col,
        best_weekday=best,
        best_weekday_avg=averages[best],
        averages=averages,
    )


def month_seasonality(table: Table,
                      min_points: int = MIN_TREND_POINTS,
                      strength: float = SEASONALITY_STRENGTH) -> Optional[MonthSeasonality]:
    """Peak and trough months; ``strong`` when their spread is large relative to the mean"""
    found = _seasonal_points(table, min_points)
    if found is None:
        return None
    date_col, num_col, points = found

    averages = _bucket_averages(points, month_index)
    peak = max(averages, key=lambda k: averages[k])
    trough = min(averages, key=lambda k: averages[k])
    overall = float(np.mean(list(averages.values())))
    spread = averages[peak] - averages[trough]
    strong = overall != 0 and spread / overall >= strength

    return MonthSeasonality(
        date_col=date_col,
        num_col=num_col,
        peak_month=peak,
        peak_avg=averages[peak],
        trough_month=trough,
        trough_avg=averages[trough],
        strong=bool(strong),
        averages=averages,
    )
