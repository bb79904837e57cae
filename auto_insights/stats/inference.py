# auto_insights/stats/inference.py
from typing import Any, Dict, Iterable, List

from auto_insights.stats.coercion import ensure_coerced, coerce_value
from auto_insights.types import CellKind, ColumnType, Table

# Equal counts resolve in this order
_PRIORITY = (ColumnType.NUMBER, ColumnType.DATE, ColumnType.STRING)


def infer_type(values: Iterable[Any]) -> ColumnType:
    """Majority vote over the non-missing values of one column.

    Accepts raw or already coerced values. Ties go to number, then date,
    then string; a column with no present values is ``unknown``.
    """
    counts = {ColumnType.NUMBER: 0, ColumnType.DATE: 0, ColumnType.STRING: 0}
    for value in values:
        cell = coerce_value(value)
        if cell.kind is CellKind.NULL:
            continue
        if cell.kind is CellKind.NUMBER:
            counts[ColumnType.NUMBER] += 1
        elif cell.kind is CellKind.DATE:
            counts[ColumnType.DATE] += 1
        else:
            counts[ColumnType.STRING] += 1

    best = max(counts.values())
    if best == 0:
        return ColumnType.UNKNOWN
    for column_type in _PRIORITY:
        if counts[column_type] == best:
            return column_type
    return ColumnType.UNKNOWN


def infer_column_types(table: Table) -> Dict[str, ColumnType]:
    """Inferred type per column, in column order"""
    coerced = ensure_coerced(table)
    return {name: infer_type(coerced.column_values(name)) for name in coerced.columns}


def columns_of_type(types: Dict[str, ColumnType], column_type: ColumnType) -> List[str]:
    return [name for name, t in types.items() if t is column_type]
