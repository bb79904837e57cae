# auto_insights/stats/quality.py
import logging
from collections import Counter
from typing import Optional

from auto_insights.stats.coercion import ensure_coerced
from auto_insights.stats.inference import columns_of_type, infer_column_types
from auto_insights.types import CategoryImbalance, ColumnType, Table

logger = logging.getLogger(__name__)


def duplicate_rows(table: Table) -> int:
    """Rows identical to an earlier row; the first occurrence is not counted"""
    coerced = ensure_coerced(table)
    seen = set()
    duplicates = 0
    for row in coerced.rows:
        key = tuple(row[name].key() for name in coerced.columns)
        if key in seen:
            duplicates += 1
        else:
            seen.add(key)
    return duplicates


def category_imbalance(table: Table) -> Optional[CategoryImbalance]:
    """Share of the most frequent value in the first string column"""
    coerced = ensure_coerced(table)
    cats = columns_of_type(infer_column_types(coerced), ColumnType.STRING)
    if not cats or len(coerced) == 0:
        return None

    column = cats[0]
    counts = Counter(
        str(cell.value) for cell in coerced.column_values(column) if not cell.is_missing
    )
    if not counts:
        return None

    # most_common keeps insertion order among equal counts
    top_category, top_count = counts.most_common(1)[0]
    return CategoryImbalance(
        column=column,
        top_category=top_category,
        top_count=top_count,
        top_share=top_count / len(coerced) * 100,
    )
