# auto_insights/types.py
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import pandas as pd
from pydantic import BaseModel, ConfigDict


class CellKind(str, Enum):
    """Closed set of value kinds a coerced cell can hold"""
    NUMBER = "number"
    STRING = "string"
    DATE = "date"
    NULL = "null"


class ColumnType(str, Enum):
    """Inferred column type"""
    NUMBER = "number"
    STRING = "string"
    DATE = "date"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Cell:
    """A coerced cell value tagged with its kind"""
    kind: CellKind
    value: Union[float, str, datetime, None] = None

    @property
    def is_missing(self) -> bool:
        return self.kind is CellKind.NULL

    def key(self) -> tuple:
        """Hashable key; numerically equal numbers share one key"""
        if self.kind is CellKind.NUMBER:
            return (self.kind.value, float(self.value))
        if self.kind is CellKind.DATE:
            return (self.kind.value, self.value.isoformat())
        if self.kind is CellKind.STRING:
            return (self.kind.value, self.value)
        return (self.kind.value,)


NULL_CELL = Cell(CellKind.NULL)


class TableValidationError(ValueError):
    """Raised when input does not have the shape of a table"""


@dataclass(frozen=True)
class Table:
    """Ordered column names plus rows of column -> raw value mappings"""
    columns: List[str]
    rows: List[Mapping[str, Any]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def column_values(self, name: str) -> List[Any]:
        """Values of one column, ``None`` where a row omits the key"""
        return [row.get(name) for row in self.rows]

    @classmethod
    def from_records(cls, records: Sequence[Mapping[str, Any]],
                     columns: Optional[Sequence[str]] = None) -> "Table":
        """Build a table from row mappings; column order is first-seen key order"""
        rows = []
        seen: Dict[str, None] = {}
        for i, record in enumerate(records):
            if not isinstance(record, Mapping):
                raise TableValidationError(f"Row {i} is not a mapping: {type(record).__name__}")
            rows.append(dict(record))
            for key in record.keys():
                seen.setdefault(str(key), None)

        if columns is None:
            columns = list(seen)
        elif len(set(columns)) != len(columns):
            raise TableValidationError("Column names must be unique")

        return cls(columns=list(columns), rows=rows)

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame) -> "Table":
        """Build a table from a DataFrame, turning NaN/NaT into None"""
        if df.columns.duplicated().any():
            raise TableValidationError("Column names must be unique")
        clean = df.astype(object).where(pd.notnull(df), None)
        columns = [str(c) for c in clean.columns]
        clean.columns = columns
        return cls(columns=columns, rows=clean.to_dict("records"))


# ---------- result models ----------

class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class NumericSummary(_Frozen):
    n: int = 0
    mean: float = 0.0
    median: float = 0.0
    min: float = 0.0
    max: float = 0.0
    stdev: float = 0.0
    q1: float = 0.0
    q3: float = 0.0
    iqr: float = 0.0
    outliers_iqr: int = 0
    outliers_z: int = 0


class ColumnProfile(_Frozen):
    name: str
    type: ColumnType
    missing_pct: int
    distinct: int
    numeric: Optional[NumericSummary] = None


class Correlation(_Frozen):
    """Numeric pair association"""
    a: str
    b: str
    r: float
    kind: str  # "pearson" | "spearman"


class CategoricalAssociation(_Frozen):
    """Cramér's V between two categorical columns"""
    a: str
    b: str
    v: float


class CategoricalNumericAssociation(_Frozen):
    """Eta squared of a numeric column grouped by a categorical one"""
    cat: str
    num: str
    eta2: float


class Changepoint(_Frozen):
    at_index: int
    improvement: float


class TrendResult(_Frozen):
    date_col: str
    num_col: str
    slope: float
    r: float
    r2: float
    dir: str  # "up" | "down" | "flat"
    changepoint: Optional[Changepoint] = None
    anomalies: int = 0


class WeekdaySeasonality(_Frozen):
    date_col: str
    num_col: str
    best_weekday: int
    best_weekday_avg: float
    averages: Dict[int, float]


class MonthSeasonality(_Frozen):
    date_col: str
    num_col: str
    peak_month: int
    peak_avg: float
    trough_month: int
    trough_avg: float
    strong: bool
    averages: Dict[int, float]


class CategoryImbalance(_Frozen):
    column: str
    top_category: str
    top_count: int
    top_share: float


class InsightReport(_Frozen):
    """Everything the synthesizer derived from one table"""
    profile: List[ColumnProfile]
    bullets: List[str]
    narrative: str
    correlations: List[Correlation]
    cat_cat: List[CategoricalAssociation]
    cat_num: List[CategoricalNumericAssociation]
    trend: Optional[TrendResult] = None
    weekday_seasonality: Optional[WeekdaySeasonality] = None
    month_seasonality: Optional[MonthSeasonality] = None
    duplicates: int = 0
    imbalance: Optional[CategoryImbalance] = None


class NarrativeResult(_Frozen):
    """Free text returned by the narrative generator"""
    status: str  # "ai" | "fallback"
    narrative: str = ""
    recommendations: List[str] = []
    risks: List[str] = []
    next_charts: List[str] = []
