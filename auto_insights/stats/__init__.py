# auto_insights/stats/__init__.py
from auto_insights.stats.associations import (
    categorical_associations,
    categorical_numeric_associations,
    correlation_matrix,
    cramers_v,
    eta_squared,
    pearson,
    spearman,
    top_correlations,
)
from auto_insights.stats.coercion import coerce_table, coerce_value
from auto_insights.stats.inference import infer_column_types, infer_type
from auto_insights.stats.profiler import profile_table, quantile, summarize_numeric
from auto_insights.stats.quality import category_imbalance, duplicate_rows
from auto_insights.stats.temporal import (
    detect_changepoint,
    first_date_trend,
    month_seasonality,
    weekday_seasonality,
)

__all__ = [
    "categorical_associations",
    "categorical_numeric_associations",
    "category_imbalance",
    "coerce_table",
    "coerce_value",
    "correlation_matrix",
    "cramers_v",
    "detect_changepoint",
    "duplicate_rows",
    "eta_squared",
    "first_date_trend",
    "infer_column_types",
    "infer_type",
    "month_seasonality",
    "pearson",
    "profile_table",
    "quantile",
    "spearman",
    "summarize_numeric",
    "top_correlations",
    "weekday_seasonality",
]
