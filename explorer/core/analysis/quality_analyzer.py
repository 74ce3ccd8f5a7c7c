"""
Quality Analyzer — Missing Values, Duplicates, Outliers
=========================================================
Full recomputation over the current dataset, never incremental.

  Missing     — per column: None or blank-after-trim cells; percentage to 1 decimal
  Duplicates  — rows whose key-sorted serialization is identical; count = rows - distinct
  Outliers    — numeric columns only, nearest-rank IQR fences (1.5 × IQR);
                needs at least 4 numeric values; reported only when count > 0
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .dataset import Dataset, Record
from .descriptive_stats import IQRBounds, iqr_bounds, quartiles
from .type_inference import ColumnType, TypeInference

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════
# REPORT DATA CLASSES
# ═══════════════════════════════════════════════════════════════

@dataclass
class MissingValueInfo:
    column: str
    count: int = 0
    percentage: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"column": self.column, "count": self.count, "percentage": self.percentage}


@dataclass
class OutlierInfo:
    column: str
    count: int
    bounds: IQRBounds

    def to_dict(self) -> Dict[str, Any]:
        return {"column": self.column, "count": self.count, **self.bounds.to_dict()}


@dataclass
class QualityReport:
    total_rows: int = 0
    total_columns: int = 0
    missing: Dict[str, MissingValueInfo] = field(default_factory=dict)
    duplicate_count: int = 0
    outliers: Dict[str, OutlierInfo] = field(default_factory=dict)

    @property
    def total_cells(self) -> int:
        return self.total_rows * self.total_columns

    @property
    def missing_cells(self) -> int:
        return sum(m.count for m in self.missing.values())

    @property
    def completeness(self) -> float:
        """Percent of non-missing cells; 100 for an empty dataset."""
        if self.total_cells == 0:
            return 100.0
        return (self.total_cells - self.missing_cells) / self.total_cells * 100

    @property
    def duplicate_percentage(self) -> float:
        if self.total_rows == 0:
            return 0.0
        return round(self.duplicate_count / self.total_rows * 100, 1)

    def columns_with_missing(self) -> List[MissingValueInfo]:
        return [m for m in self.missing.values() if m.count > 0]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_rows": self.total_rows,
            "total_columns": self.total_columns,
            "total_cells": self.total_cells,
            "missing_cells": self.missing_cells,
            "completeness": round(self.completeness, 1),
            "missing": [m.to_dict() for m in self.missing.values()],
            "duplicate_count": self.duplicate_count,
            "duplicate_percentage": self.duplicate_percentage,
            "outliers": [o.to_dict() for o in self.outliers.values()],
        }


# ═══════════════════════════════════════════════════════════════
# ANALYZER
# ═══════════════════════════════════════════════════════════════

def record_key(record: Record) -> str:
    """Structural identity of a row across all columns."""
    return json.dumps(record, sort_keys=True, default=str)


class QualityAnalyzer:

    def __init__(self, iqr_multiplier: float = 1.5, min_outlier_values: int = 4):
        self.iqr_multiplier = iqr_multiplier
        self.min_outlier_values = min_outlier_values

    def analyze(self, dataset: Dataset, column_types: Optional[Dict[str, ColumnType]] = None) -> QualityReport:
        if column_types is None:
            column_types = TypeInference().classify(dataset)
        report = QualityReport(
            total_rows=dataset.row_count,
            total_columns=dataset.column_count,
        )
        report.missing = self.missing_values(dataset)
        report.duplicate_count = self.count_duplicates(dataset)
        report.outliers = self.detect_outliers(dataset, column_types)

        logger.debug(
            f"Quality: {report.missing_cells} missing cells, "
            f"{report.duplicate_count} duplicates, {len(report.outliers)} outlier columns"
        )
        return report

    def missing_values(self, dataset: Dataset) -> Dict[str, MissingValueInfo]:
        rows = dataset.row_count
        out = {}
        for column in dataset.columns:
            count = dataset.missing_count(column)
            pct = round(count / rows * 100, 1) if rows else 0.0
            out[column] = MissingValueInfo(column=column, count=count, percentage=pct)
        return out

    def count_duplicates(self, dataset: Dataset) -> int:
        distinct = {record_key(r) for r in dataset.records}
        return dataset.row_count - len(distinct)

    def outlier_bounds(self, dataset: Dataset, column: str) -> Optional[IQRBounds]:
        """IQR fences for a column, or None when fewer than the minimum values parse."""
        values = dataset.numeric_values(column)
        if len(values) < self.min_outlier_values:
            return None
        q1, q3 = quartiles(values)
        return iqr_bounds(q1, q3, self.iqr_multiplier)

    def detect_outliers(self, dataset: Dataset, column_types: Dict[str, ColumnType]) -> Dict[str, OutlierInfo]:
        out = {}
        for column in dataset.columns:
            if column_types.get(column) != ColumnType.NUMERIC:
                continue
            bounds = self.outlier_bounds(dataset, column)
            if bounds is None:
                continue
            count = sum(1 for v in dataset.numeric_values(column) if not bounds.contains(v))
            if count > 0:
                out[column] = OutlierInfo(column=column, count=count, bounds=bounds)
        return out
