"""
Exporter — CSV, Text Summary, JSON Insights Document
======================================================
Pass-through serializations of what the engine already computed.
The core returns strings; writing files or triggering downloads is the
caller's concern.
"""

import csv
import io
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .dataset import Dataset, Record, format_number, to_display
from .descriptive_stats import maximum, mean, minimum
from .insight_generator import Insight
from .quality_analyzer import QualityReport
from .type_inference import ColumnType, serialize_types

logger = logging.getLogger(__name__)


def export_csv(records: List[Record], columns: Optional[List[str]] = None) -> str:
    """Header row, then every value double-quoted. Missing cells become ""."""
    if columns is None:
        columns = list(records[0].keys()) if records else []
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(columns)
    for record in records:
        writer.writerow([to_display(record.get(c)) for c in columns])
    return buffer.getvalue()


def export_summary(
    dataset: Dataset,
    column_types: Dict[str, ColumnType],
    quality: QualityReport,
    file_name: str = "",
) -> str:
    lines = [
        "DATA SUMMARY",
        "=" * 50,
        "",
        f"File: {file_name}",
        f"Total Rows: {dataset.row_count}",
        f"Total Columns: {dataset.column_count}",
        "",
        "COLUMN DETAILS:",
        "-" * 50,
    ]
    for column in dataset.columns:
        column_type = column_types.get(column)
        lines.append("")
        lines.append(f"{column} ({column_type.value if column_type else 'unknown'})")
        if column_type == ColumnType.NUMERIC:
            values = dataset.numeric_values(column)
            if values:
                lines.append(f"  Mean: {mean(values):.2f}")
                lines.append(f"  Min: {format_number(minimum(values))}")
                lines.append(f"  Max: {format_number(maximum(values))}")
        else:
            unique = {to_display(v) for v in dataset.present_values(column)}
            lines.append(f"  Unique values: {len(unique)}")
        missing = quality.missing.get(column)
        if missing and missing.count > 0:
            lines.append(f"  Missing: {missing.count} ({missing.percentage:.1f}%)")
    return "\n".join(lines) + "\n"


def build_insights_document(
    dataset: Dataset,
    column_types: Dict[str, ColumnType],
    quality: QualityReport,
    insights: List[Insight],
    file_name: str = "",
    generated_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    generated_at = generated_at or datetime.now(timezone.utc)
    rows = dataset.row_count
    missing_values = {
        m.column: {"count": m.count, "percentage": f"{m.count / rows * 100:.2f}"}
        for m in quality.columns_with_missing()
    }
    return {
        "fileName": file_name,
        "totalRows": rows,
        "totalColumns": dataset.column_count,
        "columnTypes": serialize_types(column_types),
        "missingValues": missing_values,
        "duplicates": quality.duplicate_count,
        "outliers": {c: o.to_dict() for c, o in quality.outliers.items()},
        "insights": [i.to_dict() for i in insights],
        "generatedAt": generated_at.isoformat(),
    }


def export_insights_json(*args, **kwargs) -> str:
    return json.dumps(build_insights_document(*args, **kwargs), indent=2, ensure_ascii=False)
