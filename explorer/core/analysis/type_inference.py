"""
Type Inference — Column Semantic Classification
=================================================
Classifies every column as numeric, date, categorical or text from a sample
of its non-missing values.

Priority (first match wins):
  1. no non-missing values        → empty_type (text by default)
  2. numeric fraction   > 0.8     → numeric
  3. date fraction      > 0.8     → date
  4. distinct < 20 or distinct/sample < 0.5 → categorical
  5. otherwise                    → text

Numeric is checked before categorical on purpose: a column of small integer
codes classifies as numeric.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from dateutil import parser as date_parser

from .dataset import Dataset, is_missing, parse_number, to_display

logger = logging.getLogger(__name__)


_DEFAULT_A = datetime(2000, 1, 1)
_DEFAULT_B = datetime(2001, 2, 2)


class ColumnType(str, Enum):
    NUMERIC = "numeric"
    DATE = "date"
    CATEGORICAL = "categorical"
    TEXT = "text"
    EMPTY = "empty"


def is_date(value: Any) -> bool:
    """
    Calendar-date check. The string must state year, month and day itself:
    parsing against two different defaults has to give the same date, so
    "mon", "may" or "1st" (completed from the default) do not count.
    """
    if isinstance(value, bool) or value is None:
        return False
    text = str(value).strip()
    if not text or not any(ch.isdigit() for ch in text):
        return False
    try:
        first = date_parser.parse(text, default=_DEFAULT_A)
        second = date_parser.parse(text, default=_DEFAULT_B)
    except (ValueError, OverflowError):
        return False
    return first.date() == second.date()


class TypeInference:
    """Deterministic column classifier. Holds thresholds only, no state."""

    def __init__(
        self,
        sample_size: int = 100,
        numeric_ratio: float = 0.8,
        date_ratio: float = 0.8,
        categorical_max_unique: int = 20,
        categorical_unique_ratio: float = 0.5,
        empty_type: ColumnType = ColumnType.TEXT,
    ):
        self.sample_size = sample_size
        self.numeric_ratio = numeric_ratio
        self.date_ratio = date_ratio
        self.categorical_max_unique = categorical_max_unique
        self.categorical_unique_ratio = categorical_unique_ratio
        self.empty_type = ColumnType(empty_type)

    def classify(self, dataset: Dataset) -> Dict[str, ColumnType]:
        types: Dict[str, ColumnType] = {}
        for column in dataset.columns:
            types[column] = self.classify_values(dataset.values(column))
            logger.debug(f"Column '{column}' classified as {types[column].value}")
        return types

    def classify_values(self, values: List[Any]) -> ColumnType:
        sample = self._sample(values)
        if not sample:
            return self.empty_type

        size = len(sample)

        numeric = sum(1 for v in sample if parse_number(v) is not None)
        if numeric / size > self.numeric_ratio:
            return ColumnType.NUMERIC

        dates = sum(1 for v in sample if is_date(v))
        if dates / size > self.date_ratio:
            return ColumnType.DATE

        distinct = len({to_display(v) for v in sample})
        if distinct < self.categorical_max_unique or distinct / size < self.categorical_unique_ratio:
            return ColumnType.CATEGORICAL

        return ColumnType.TEXT

    def _sample(self, values: List[Any]) -> List[Any]:
        sample = []
        for value in values:
            if is_missing(value):
                continue
            sample.append(value)
            if len(sample) >= self.sample_size:
                break
        return sample


def columns_of_type(column_types: Dict[str, ColumnType], *wanted: ColumnType) -> List[str]:
    """Columns with one of the wanted types, in column order."""
    return [c for c, t in column_types.items() if t in wanted]


def type_counts(column_types: Dict[str, ColumnType]) -> Dict[str, int]:
    counts = {t.value: 0 for t in ColumnType}
    for t in column_types.values():
        counts[t.value] += 1
    return counts


def serialize_types(column_types: Optional[Dict[str, ColumnType]]) -> Dict[str, str]:
    return {c: t.value for c, t in (column_types or {}).items()}
