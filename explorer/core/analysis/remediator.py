"""
Remediator — Imputation, Outlier and Duplicate Fixes
======================================================
Every fix returns a NEW Dataset (keep returns the input as is); the input is
never modified. Callers re-derive column types and the quality report
afterwards.

Missing-value fixes (per column):
  delete   — drop rows where the column is missing
  mean     — fill with the mean of the column's numeric values, 2 decimals
  mode     — fill with the most frequent non-missing value
  forward  — carry the last non-missing value down; leading gaps stay missing

Outlier fixes (per numeric column, against IQR fences):
  remove   — drop rows whose value lies outside the fences
  cap      — clamp out-of-fence values to the nearest fence
  keep     — no-op

Dataset fixes:
  remove_duplicates — keep the first row of each identical group

A fill with no source values raises DegenerateComputationError instead of
writing NaN into the cells.
"""

import logging
from enum import Enum
from typing import Any, Optional

from .dataset import Dataset, format_number, is_missing, parse_number
from .descriptive_stats import IQRBounds, mean, mode
from .errors import DegenerateComputationError, InputError
from .quality_analyzer import QualityAnalyzer, record_key

logger = logging.getLogger(__name__)


class FixMethod(str, Enum):
    DELETE = "delete"
    MEAN = "mean"
    MODE = "mode"
    FORWARD = "forward"
    REMOVE = "remove"
    CAP = "cap"
    KEEP = "keep"
    REMOVE_DUPLICATES = "remove_duplicates"


MISSING_VALUE_METHODS = (FixMethod.DELETE, FixMethod.MEAN, FixMethod.MODE, FixMethod.FORWARD)
OUTLIER_METHODS = (FixMethod.REMOVE, FixMethod.CAP, FixMethod.KEEP)


def parse_method(method: Any) -> FixMethod:
    try:
        return FixMethod(method)
    except ValueError:
        valid = ", ".join(m.value for m in FixMethod)
        raise InputError(f"Unknown fix method '{method}'. Valid methods: {valid}")


class Remediator:

    def __init__(self, quality_analyzer: Optional[QualityAnalyzer] = None):
        self.quality_analyzer = quality_analyzer or QualityAnalyzer()

    def apply_fix(
        self,
        dataset: Dataset,
        column: Optional[str],
        method: Any,
        bounds: Optional[IQRBounds] = None,
    ) -> Dataset:
        fix = parse_method(method)
        if dataset.is_empty():
            raise InputError(f"Cannot apply '{fix.value}': the dataset has no rows", column=column)

        if fix == FixMethod.REMOVE_DUPLICATES:
            return self.remove_duplicates(dataset)

        if not column:
            raise InputError(f"Fix '{fix.value}' needs a column")
        dataset.require_column(column)

        if fix == FixMethod.DELETE:
            return self.delete_missing(dataset, column)
        if fix == FixMethod.MEAN:
            return self.fill_mean(dataset, column)
        if fix == FixMethod.MODE:
            return self.fill_mode(dataset, column)
        if fix == FixMethod.FORWARD:
            return self.forward_fill(dataset, column)
        if fix == FixMethod.KEEP:
            return dataset

        bounds = bounds or self.quality_analyzer.outlier_bounds(dataset, column)
        if bounds is None:
            raise DegenerateComputationError(
                f"Column '{column}' has fewer than "
                f"{self.quality_analyzer.min_outlier_values} numeric values; "
                f"outlier bounds are not applicable",
                column=column,
            )
        if fix == FixMethod.REMOVE:
            return self.remove_outliers(dataset, column, bounds)
        return self.cap_outliers(dataset, column, bounds)

    # ──────────────────────────────────────────────────────────
    # MISSING VALUES
    # ──────────────────────────────────────────────────────────

    def delete_missing(self, dataset: Dataset, column: str) -> Dataset:
        kept = [r for r in dataset.records if not is_missing(r[column])]
        logger.info(f"Deleted {dataset.row_count - len(kept)} rows missing '{column}'")
        return dataset.with_records(kept)

    def fill_mean(self, dataset: Dataset, column: str) -> Dataset:
        values = dataset.numeric_values(column)
        average = mean(values)
        if average is None:
            logger.warning(f"Mean fill rejected: '{column}' has no numeric values")
            raise DegenerateComputationError(
                f"Cannot fill '{column}' with the mean: the column has no numeric values",
                column=column,
            )
        return self._fill(dataset, column, f"{average:.2f}")

    def fill_mode(self, dataset: Dataset, column: str) -> Dataset:
        most_common = mode(dataset.present_values(column))
        if most_common is None:
            logger.warning(f"Mode fill rejected: '{column}' has no values")
            raise DegenerateComputationError(
                f"Cannot fill '{column}' with the mode: the column has no values",
                column=column,
            )
        return self._fill(dataset, column, most_common)

    def forward_fill(self, dataset: Dataset, column: str) -> Dataset:
        records = []
        last = None
        for record in dataset.records:
            row = dict(record)
            if not is_missing(row[column]):
                last = row[column]
            elif last is not None:
                row[column] = last
            records.append(row)
        return dataset.with_records(records)

    def _fill(self, dataset: Dataset, column: str, value: Any) -> Dataset:
        records = []
        filled = 0
        for record in dataset.records:
            row = dict(record)
            if is_missing(row[column]):
                row[column] = value
                filled += 1
            records.append(row)
        logger.info(f"Filled {filled} missing cells in '{column}' with {value!r}")
        return dataset.with_records(records)

    # ──────────────────────────────────────────────────────────
    # OUTLIERS
    # ──────────────────────────────────────────────────────────

    def remove_outliers(self, dataset: Dataset, column: str, bounds: IQRBounds) -> Dataset:
        kept = []
        for record in dataset.records:
            number = parse_number(record[column])
            if number is not None and not bounds.contains(number):
                continue
            kept.append(record)
        logger.info(f"Removed {dataset.row_count - len(kept)} outlier rows from '{column}'")
        return dataset.with_records(kept)

    def cap_outliers(self, dataset: Dataset, column: str, bounds: IQRBounds) -> Dataset:
        records = []
        for record in dataset.records:
            row = dict(record)
            number = parse_number(row[column])
            if number is not None and not bounds.contains(number):
                capped = bounds.clamp(number)
                row[column] = format_number(capped) if isinstance(row[column], str) else capped
            records.append(row)
        return dataset.with_records(records)

    # ──────────────────────────────────────────────────────────
    # DUPLICATES
    # ──────────────────────────────────────────────────────────

    def remove_duplicates(self, dataset: Dataset) -> Dataset:
        seen = set()
        kept = []
        for record in dataset.records:
            key = record_key(record)
            if key in seen:
                continue
            seen.add(key)
            kept.append(record)
        logger.info(f"Removed {dataset.row_count - len(kept)} duplicate rows")
        return dataset.with_records(kept)
