"""Automated statistical profiling and insight synthesis for tabular data."""
from auto_insights.insights import build_ai_payload, generate_insights
from auto_insights.types import ColumnProfile, ColumnType, InsightReport, Table, TableValidationError

__version__ = "1.0.0"

__all__ = [
    "ColumnProfile",
    "ColumnType",
    "InsightReport",
    "Table",
    "TableValidationError",
    "build_ai_payload",
    "generate_insights",
]
