# auto_insights/stats/associations.py
"""Pairwise relationships between columns.

- numeric <-> numeric: Pearson and Spearman (average ranks)
- categorical <-> categorical: Cramér's V
- categorical -> numeric: eta squared

Every measure returns ``None`` when it is undefined (too few points, zero
variance, a single category). Undefined measures are left out of rankings.
"""
import logging
import math
from itertools import combinations
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy import stats

from auto_insights.stats.coercion import ensure_coerced
from auto_insights.stats.inference import columns_of_type, infer_column_types
from auto_insights.stats.profiler import is_constant
from auto_insights.types import (
    CategoricalAssociation,
    CategoricalNumericAssociation,
    Cell,
    CellKind,
    ColumnType,
    Correlation,
    Table,
)

logger = logging.getLogger(__name__)

MIN_PAIRED_POINTS = 3
MIN_CONTINGENCY_OBSERVATIONS = 5
MISSING_CATEGORY = "\x00<missing>"


def _as_float(value: Any) -> float:
    if isinstance(value, Cell):
        return float(value.value) if value.kind is CellKind.NUMBER else math.nan
    if value is None or isinstance(value, bool):
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def paired_values(x: Sequence[Any], y: Sequence[Any]) -> Tuple[np.ndarray, np.ndarray]:
    """Positions where both series hold a finite number, up to the shorter length"""
    n = min(len(x), len(y))
    xs = np.array([_as_float(v) for v in x[:n]], dtype=float)
    ys = np.array([_as_float(v) for v in y[:n]], dtype=float)
    mask = np.isfinite(xs) & np.isfinite(ys)
    return xs[mask], ys[mask]


def _product_moment(xs: np.ndarray, ys: np.ndarray, min_points: int) -> Optional[float]:
    if len(xs) < min_points or is_constant(xs) or is_constant(ys):
        return None
    dx = xs - xs.mean()
    dy = ys - ys.mean()
    sxx = float(np.dot(dx, dx))
    syy = float(np.dot(dy, dy))
    if sxx == 0 or syy == 0:
        return None
    r = float(np.dot(dx, dy)) / math.sqrt(sxx * syy)
    return max(-1.0, min(1.0, r))


def pearson(x: Sequence[Any], y: Sequence[Any],
            min_points: int = MIN_PAIRED_POINTS) -> Optional[float]:
    """Pearson product-moment correlation, or None when undefined"""
    xs, ys = paired_values(x, y)
    return _product_moment(xs, ys, min_points)


def average_ranks(values: Sequence[float]) -> np.ndarray:
    """1-based ranks; tied values share the mean of their positions"""
    return stats.rankdata(np.asarray(values, dtype=float), method="average")


def spearman(x: Sequence[Any], y: Sequence[Any],
             min_points: int = MIN_PAIRED_POINTS) -> Optional[float]:
    """Spearman rank correlation, or None when undefined"""
    xs, ys = paired_values(x, y)
    if len(xs) < min_points:
        return None
    return _product_moment(average_ranks(xs), average_ranks(ys), min_points)


def _category(value: Any) -> Optional[str]:
    if isinstance(value, Cell):
        if value.is_missing:
            return None
        if value.kind is CellKind.DATE:
            return value.value.isoformat()
        if value.kind is CellKind.NUMBER:
            return repr(float(value.value))
        return str(value.value)
    if value is None or value == "":
        return None
    return str(value)


def cramers_v(a: Sequence[Any], b: Sequence[Any],
              min_observations: int = MIN_CONTINGENCY_OBSERVATIONS) -> Optional[float]:
    """Cramér's V of two categorical series.

    Missing values form their own category.
    """
    n = min(len(a), len(b))
    if n < min_observations:
        return None

    left = pd.Series([_category(v) or MISSING_CATEGORY for v in a[:n]])
    right = pd.Series([_category(v) or MISSING_CATEGORY for v in b[:n]])
    if left.nunique() < 2 or right.nunique() < 2:
        return None

    contingency = pd.crosstab(left, right).to_numpy(dtype=float)
    chi2, _, _, _ = stats.chi2_contingency(contingency, correction=False)
    min_dim = min(contingency.shape[0] - 1, contingency.shape[1] - 1)
    v = math.sqrt(chi2 / (n * min_dim))
    if not math.isfinite(v):
        return None
    return max(0.0, min(1.0, v))


def eta_squared(groups: Sequence[Any], values: Sequence[Any],
                min_points: int = MIN_PAIRED_POINTS) -> Optional[float]:
    """Share of variance in ``values`` explained by ``groups``.

    Only pairs with a present group and a finite value take part.
    """
    n = min(len(groups), len(values))
    labels: List[str] = []
    numbers: List[float] = []
    for g, v in zip(groups[:n], values[:n]):
        label = _category(g)
        number = _as_float(v)
        if label is None or not math.isfinite(number):
            continue
        labels.append(label)
        numbers.append(number)

    if len(numbers) < min_points:
        return None

    frame = pd.DataFrame({"group": labels, "value": numbers})
    if is_constant(frame["value"].to_numpy()):
        return None

    grand_mean = frame["value"].mean()
    total_ss = float(((frame["value"] - grand_mean) ** 2).sum())
    if total_ss == 0:
        return None

    grouped = frame.groupby("group", sort=False)["value"].agg(["count", "mean"])
    between_ss = float((grouped["count"] * (grouped["mean"] - grand_mean) ** 2).sum())
    return max(0.0, min(1.0, between_ss / total_ss))


def rank_by(items: List[Any], score) -> List[Any]:
    """Sort descending by score; stable, so ties keep first-seen order"""
    kept = [item for item in items if score(item) is not None and math.isfinite(score(item))]
    return sorted(kept, key=score, reverse=True)


def _cells_by_type(table: Table) -> Tuple[Table, Dict[str, ColumnType]]:
    coerced = ensure_coerced(table)
    return coerced, infer_column_types(coerced)


def top_correlations(table: Table, limit: int = 5,
                     min_points: int = MIN_PAIRED_POINTS) -> List[Correlation]:
    """Pearson and Spearman for every numeric column pair, strongest first"""
    coerced, types = _cells_by_type(table)
    numeric_cols = columns_of_type(types, ColumnType.NUMBER)

    results: List[Correlation] = []
    for a, b in combinations(numeric_cols, 2):
        x = coerced.column_values(a)
        y = coerced.column_values(b)
        for kind, measure in (("pearson", pearson), ("spearman", spearman)):
            r = measure(x, y, min_points)
            if r is None:
                logger.debug(f"Skipping {kind} for {a}/{b}: undefined")
                continue
            results.append(Correlation(a=a, b=b, r=r, kind=kind))

    return rank_by(results, lambda c: abs(c.r))[:limit]


def categorical_associations(table: Table, limit: Optional[int] = None,
                             min_observations: int = MIN_CONTINGENCY_OBSERVATIONS
                             ) -> List[CategoricalAssociation]:
    """Cramér's V for every pair of string columns, strongest first"""
    coerced, types = _cells_by_type(table)
    cats = columns_of_type(types, ColumnType.STRING)

    results = []
    for a, b in combinations(cats, 2):
        v = cramers_v(coerced.column_values(a), coerced.column_values(b), min_observations)
        if v is not None:
            results.append(CategoricalAssociation(a=a, b=b, v=v))

    ranked = rank_by(results, lambda x: x.v)
    return ranked if limit is None else ranked[:limit]


def categorical_numeric_associations(table: Table, limit: Optional[int] = None,
                                     min_points: int = MIN_PAIRED_POINTS
                                     ) -> List[CategoricalNumericAssociation]:
    """Eta squared for every (string column, numeric column) pair, strongest first"""
    coerced, types = _cells_by_type(table)
    cats = columns_of_type(types, ColumnType.STRING)
    nums = columns_of_type(types, ColumnType.NUMBER)

    results = []
    for cat in cats:
        for num in nums:
            e2 = eta_squared(coerced.column_values(cat), coerced.column_values(num), min_points)
            if e2 is not None:
                results.append(CategoricalNumericAssociation(cat=cat, num=num, eta2=e2))

    ranked = rank_by(results, lambda x: x.eta2)
    return ranked if limit is None else ranked[:limit]


def correlation_matrix(table: Table, columns: Optional[Sequence[str]] = None
                       ) -> Tuple[List[str], List[List[Optional[float]]]]:
    """Pearson matrix over numeric columns; undefined cells are None"""
    coerced, types = _cells_by_type(table)
    cols = list(columns) if columns else columns_of_type(types, ColumnType.NUMBER)
    values = {c: coerced.column_values(c) for c in cols}

    matrix: List[List[Optional[float]]] = []
    for a in cols:
        row = []
        for b in cols:
            row.append(pearson(values[a], values[b]))
        matrix.append(row)
    return cols, matrix
