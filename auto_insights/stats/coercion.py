# auto_insights/stats/coercion.py
"""Normalization of raw cell values into tagged cells.

Rules, applied in order:

1. ``None``, the empty string, NaN and NaT are missing.
2. A finite number (``bool`` excluded) is kept as a number.
3. A string matching ``^-?\\d+(\\.\\d+)?$`` once trimmed is parsed as a number.
4. A string that parses as a timestamp becomes a date.
5. Anything else is kept as a string.

Coercion never raises.
"""
import math
import numbers
import re
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
from dateutil import parser as dateparser

from auto_insights.types import NULL_CELL, Cell, CellKind, Table

NUMERIC_PATTERN = re.compile(r"^-?\d+(\.\d+)?$")

# Fixed default so partial dates ("March 5") never depend on today's date
_DATE_DEFAULT = datetime(1970, 1, 1)
_DIGIT_RUN = re.compile(r"\d+")
_GROUPED_NUMBER = re.compile(r"^-?[\d,]+(\.\d+)?$")


def looks_numeric(text: str) -> bool:
    return bool(NUMERIC_PATTERN.match(text.strip()))


def _date_like(text: str) -> bool:
    if _GROUPED_NUMBER.match(text):
        return False
    runs = _DIGIT_RUN.findall(text)
    return len(runs) >= 2 or any(len(run) >= 4 for run in runs)


def parse_date(text: str) -> Optional[datetime]:
    """Parse a date string into a naive UTC datetime, or None.

    Only strings with two digit groups or a four-digit year are tried, so
    words ("March"), ordinals ("1st"), codes ("T1") and comma-grouped
    numbers ("1,234") stay strings.
    """
    text = text.strip()
    if not text or not _date_like(text):
        return None
    try:
        parsed = dateparser.parse(text, default=_DATE_DEFAULT)
    except (ValueError, OverflowError):
        return None
    return _naive_utc(parsed)


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def coerce_value(value: Any) -> Cell:
    """Coerce one raw value into a Cell"""
    if isinstance(value, Cell):
        return value
    if value is None or value is pd.NaT:
        return NULL_CELL

    if isinstance(value, bool):
        return Cell(CellKind.STRING, str(value).lower())

    if isinstance(value, numbers.Real):
        number = float(value)
        if math.isfinite(number):
            return Cell(CellKind.NUMBER, number)
        return NULL_CELL

    if isinstance(value, np.datetime64):
        value = pd.Timestamp(value)
        if value is pd.NaT:
            return NULL_CELL
    if isinstance(value, datetime):
        return Cell(CellKind.DATE, _naive_utc(pd.Timestamp(value).to_pydatetime()))
    if isinstance(value, date):
        return Cell(CellKind.DATE, datetime(value.year, value.month, value.day))

    if isinstance(value, str):
        text = value.strip()
        if text == "":
            return NULL_CELL
        if NUMERIC_PATTERN.match(text):
            return Cell(CellKind.NUMBER, float(text))
        parsed = parse_date(text)
        if parsed is not None:
            return Cell(CellKind.DATE, parsed)
        return Cell(CellKind.STRING, value)

    return Cell(CellKind.STRING, str(value))


def coerce_table(table: Table) -> Table:
    """Return a copy of the table whose cells are all Cell instances.

    Every row is indexed by the full column set; absent keys become
    missing cells. The input table is left untouched.
    """
    rows: List[Dict[str, Cell]] = []
    for row in table.rows:
        rows.append({name: coerce_value(row.get(name)) for name in table.columns})
    return Table(columns=list(table.columns), rows=rows)


def is_coerced(table: Table) -> bool:
    return all(isinstance(row.get(name), Cell) for row in table.rows for name in table.columns)


def ensure_coerced(table: Table) -> Table:
    """Coerce the table unless it already holds Cells everywhere"""
    return table if is_coerced(table) else coerce_table(table)
