# auto_insights/stats/profiler.py
import logging
import math
from typing import List, Sequence

import numpy as np

from auto_insights.stats.coercion import ensure_coerced
from auto_insights.stats.inference import infer_type
from auto_insights.types import Cell, CellKind, ColumnProfile, ColumnType, NumericSummary, Table

logger = logging.getLogger(__name__)

IQR_MULTIPLIER = 1.5
Z_THRESHOLD = 3.0


def round_half_up(x: float) -> int:
    """Round to the nearest integer, halves away from zero for positives"""
    return int(math.floor(x + 0.5))


def quantile(sorted_values: Sequence[float], q: float) -> float:
    """Linear-interpolation quantile of an already sorted sequence"""
    m = len(sorted_values)
    if m == 0:
        return 0.0
    pos = (m - 1) * q
    base = int(math.floor(pos))
    rest = pos - base
    if base + 1 < m:
        return sorted_values[base] + rest * (sorted_values[base + 1] - sorted_values[base])
    return sorted_values[base]


def finite_numbers(cells: Sequence[Cell]) -> List[float]:
    return [float(c.value) for c in cells if c.kind is CellKind.NUMBER and math.isfinite(c.value)]


def is_constant(values: Sequence[float]) -> bool:
    """True when every value is identical, compared exactly rather than through the variance"""
    return len(values) == 0 or float(np.ptp(np.asarray(values, dtype=float))) == 0


def sample_stdev(values: Sequence[float]) -> float:
    if len(values) <= 1 or is_constant(values):
        return 0.0
    return float(np.std(np.asarray(values, dtype=float), ddof=1))


def count_iqr_outliers(values: Sequence[float], q1: float, q3: float,
                       multiplier: float = IQR_MULTIPLIER) -> int:
    iqr = q3 - q1
    lo, hi = q1 - multiplier * iqr, q3 + multiplier * iqr
    return sum(1 for v in values if v < lo or v > hi)


def count_z_outliers(values: Sequence[float], mean: float, stdev: float,
                     threshold: float = Z_THRESHOLD) -> int:
    if stdev == 0:
        return 0
    return sum(1 for v in values if abs((v - mean) / stdev) > threshold)


def summarize_numeric(values: Sequence[float],
                      iqr_multiplier: float = IQR_MULTIPLIER,
                      z_threshold: float = Z_THRESHOLD) -> NumericSummary:
    """Descriptive statistics of finite values; all zeros when there are none"""
    clean = sorted(float(v) for v in values if math.isfinite(v))
    n = len(clean)
    if n == 0:
        return NumericSummary()

    mean = float(np.mean(clean))
    stdev = sample_stdev(clean)
    q1 = quantile(clean, 0.25)
    q3 = quantile(clean, 0.75)

    return NumericSummary(
        n=n,
        mean=mean,
        median=quantile(clean, 0.5),
        min=clean[0],
        max=clean[-1],
        stdev=stdev,
        q1=q1,
        q3=q3,
        iqr=q3 - q1,
        outliers_iqr=count_iqr_outliers(clean, q1, q3, iqr_multiplier),
        outliers_z=count_z_outliers(clean, mean, stdev, z_threshold),
    )


def profile_column(name: str, cells: Sequence[Cell], row_count: int,
                   iqr_multiplier: float = IQR_MULTIPLIER,
                   z_threshold: float = Z_THRESHOLD) -> ColumnProfile:
    present = [c for c in cells if not c.is_missing]
    missing = len(cells) - len(present)
    column_type = infer_type(cells)

    numeric = None
    if column_type is ColumnType.NUMBER:
        numeric = summarize_numeric(finite_numbers(cells), iqr_multiplier, z_threshold)

    return ColumnProfile(
        name=name,
        type=column_type,
        missing_pct=round_half_up(missing / max(1, row_count) * 100),
        distinct=len({c.key() for c in present}),
        numeric=numeric,
    )


def profile_table(table: Table,
                  iqr_multiplier: float = IQR_MULTIPLIER,
                  z_threshold: float = Z_THRESHOLD) -> List[ColumnProfile]:
    """Profile every column of the table, in column order"""
    coerced = ensure_coerced(table)
    row_count = len(coerced)
    profiles = [
        profile_column(name, coerced.column_values(name), row_count, iqr_multiplier, z_threshold)
        for name in coerced.columns
    ]
    logger.debug(f"Profiled {len(profiles)} columns over {row_count} rows")
    return profiles
