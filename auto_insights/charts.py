# auto_insights/charts.py
"""Plotting-ready aggregates for the rendering layer"""
import math
from collections import Counter
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from auto_insights.config import ChartConfig
from auto_insights.stats.associations import correlation_matrix
from auto_insights.stats.coercion import ensure_coerced
from auto_insights.stats.inference import columns_of_type, infer_column_types
from auto_insights.stats.profiler import finite_numbers, quantile
from auto_insights.types import CellKind, ColumnType, Table


def suggest_charts(table: Table, config: Optional[ChartConfig] = None) -> List[Dict[str, Any]]:
    """Chart configurations suited to the table's column types"""
    config = config or ChartConfig()
    types = infer_column_types(table)
    date_cols = columns_of_type(types, ColumnType.DATE)
    num_cols = columns_of_type(types, ColumnType.NUMBER)
    str_cols = columns_of_type(types, ColumnType.STRING)

    cfgs: List[Dict[str, Any]] = []

    if date_cols and num_cols:
        x, y = date_cols[0], num_cols[0]
        cfgs.append({"type": "line", "x": x, "y": y, "title": f"Trend of {y} over {x}"})
        cfgs.append({"type": "area", "x": x, "y": y, "title": f"Area trend of {y} over {x}"})

    if str_cols:
        cat = str_cols[0]
        cfgs.append({"type": "barTopK", "cat": cat, "k": config.BAR_TOP_K, "title": f"Top {cat}"})
        cfgs.append({"type": "donut", "cat": cat, "k": config.DONUT_TOP_K,
                     "title": f"Share of {cat} (top {config.DONUT_TOP_K})"})

    if len(num_cols) >= 2:
        cfgs.append({"type": "scatter", "x": num_cols[0], "y": num_cols[1],
                     "title": f"{num_cols[0]} vs {num_cols[1]}"})

    if num_cols:
        col = num_cols[0]
        cfgs.append({"type": "hist", "col": col, "bins": config.HIST_BINS, "title": f"Distribution of {col}"})
        cfgs.append({"type": "box", "col": col, "title": f"Boxplot of {col}"})

    if len(num_cols) >= 3:
        cfgs.append({"type": "corrHeatmap", "cols": num_cols[:config.HEATMAP_MAX_COLUMNS],
                     "title": "Correlation heatmap"})

    return cfgs[:config.MAX_CHARTS]


def build_line_data(table: Table, x: str, y: str) -> List[Dict[str, Any]]:
    """Points with a present x and a finite y, in row order"""
    coerced = ensure_coerced(table)
    points = []
    for row in coerced.rows:
        cx, cy = row[x], row[y]
        if cx.is_missing or cy.kind is not CellKind.NUMBER:
            continue
        points.append({"x": cx.value, "y": cy.value})
    return points


def build_area_data(table: Table, x: str, y: str) -> List[Dict[str, Any]]:
    return build_line_data(table, x, y)


def build_bar_top_k(table: Table, cat: str, k: int = 10) -> List[Dict[str, Any]]:
    """Most frequent categories; missing values count as "Unknown" """
    coerced = ensure_coerced(table)
    counts = Counter(
        "Unknown" if cell.is_missing else str(cell.value) for cell in coerced.column_values(cat)
    )
    return [{"name": name, "count": count} for name, count in counts.most_common(k)]


def build_pie_top_k(table: Table, cat: str, k: int = 6) -> List[Dict[str, Any]]:
    return [{"name": d["name"], "value": d["count"]} for d in build_bar_top_k(table, cat, k)]


def build_scatter_data(table: Table, x: str, y: str) -> List[Dict[str, float]]:
    coerced = ensure_coerced(table)
    return [
        {"x": row[x].value, "y": row[y].value}
        for row in coerced.rows
        if row[x].kind is CellKind.NUMBER and row[y].kind is CellKind.NUMBER
    ]


def histogram(values: Sequence[float], bins: int = 12) -> Dict[str, List[float]]:
    """Equal-width bins between min and max; returns bin centers and counts"""
    clean = [v for v in values if math.isfinite(v)]
    if not clean or bins <= 0:
        return {"bins": [], "counts": []}

    lo, hi = min(clean), max(clean)
    if lo == hi:
        return {"bins": [lo], "counts": [len(clean)]}

    counts, edges = np.histogram(clean, bins=bins, range=(lo, hi))
    centers = (edges[:-1] + edges[1:]) / 2
    return {"bins": [float(c) for c in centers], "counts": [int(c) for c in counts]}


def build_hist_data(table: Table, col: str, bins: int = 12) -> List[Dict[str, float]]:
    coerced = ensure_coerced(table)
    result = histogram(finite_numbers(coerced.column_values(col)), bins)
    return [{"bin": center, "count": count} for center, count in zip(result["bins"], result["counts"])]


def build_box_summary(table: Table, col: str) -> Optional[Dict[str, float]]:
    """Quartiles and whiskers at the last values inside the 1.5·IQR fences"""
    coerced = ensure_coerced(table)
    vals = sorted(finite_numbers(coerced.column_values(col)))
    if not vals:
        return None

    q1, q2, q3 = quantile(vals, 0.25), quantile(vals, 0.5), quantile(vals, 0.75)
    iqr = q3 - q1
    lo, hi = q1 - 1.5 * iqr, q3 + 1.5 * iqr
    inside = [v for v in vals if lo <= v <= hi]

    return {
        "q1": q1,
        "q2": q2,
        "q3": q3,
        "whiskerLo": inside[0] if inside else vals[0],
        "whiskerHi": inside[-1] if inside else vals[-1],
        "min": vals[0],
        "max": vals[-1],
    }


def summarize_charts(table: Table, cfgs: Optional[List[Dict[str, Any]]] = None,
                     config: Optional[ChartConfig] = None) -> Dict[str, Any]:
    """Minimal description of the suggested charts for a charts-only narrative.

    Line charts report their y range, bar charts their top categories and
    scatter plots their point count. Other chart types are left out.
    """
    config = config or ChartConfig()
    if cfgs is None:
        cfgs = suggest_charts(table, config)

    charts = []
    for cfg in cfgs:
        if cfg["type"] == "line":
            ys = [p["y"] for p in build_line_data(table, cfg["x"], cfg["y"])]
            if ys:
                charts.append({"type": "line", "x": cfg["x"], "y": cfg["y"],
                               "yMin": min(ys), "yMax": max(ys)})
        elif cfg["type"] == "barTopK":
            charts.append({"type": "barTopK", "cat": cfg["cat"], "k": cfg["k"],
                           "top": build_bar_top_k(table, cfg["cat"], cfg["k"])})
        elif cfg["type"] == "scatter":
            charts.append({"type": "scatter", "x": cfg["x"], "y": cfg["y"],
                           "points": len(build_scatter_data(table, cfg["x"], cfg["y"]))})
    return {"charts": charts}


def build_corr_heatmap(table: Table, cols: Optional[Sequence[str]] = None) -> Dict[str, Any]:
    """Pearson matrix as a flat cell list; undefined cells become 0"""
    chosen, matrix = correlation_matrix(table, cols)
    data = []
    for i, a in enumerate(chosen):
        for j, b in enumerate(chosen):
            r = matrix[i][j]
            data.append({"x": a, "y": b, "r": r if r is not None else 0.0})
    return {"cols": chosen, "data": data}
