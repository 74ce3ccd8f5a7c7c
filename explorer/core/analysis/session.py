"""
Explorer Session — The Single Entry Point
===========================================
Owns one user's working state and wires every engine component together.
Replaces implicit globals: the hosting application creates one session per
user and passes it around explicitly.

State:
  dataset        — active records (replaced wholesale on every mutation)
  original       — records as uploaded, for restore_original()
  filters        — FilterSet narrowing the working view
  derived cache  — column types, quality report, insights; dropped on mutation

Pipeline:
  load / fix → TypeInference → (QualityAnalyzer, InsightGenerator, QueryResponder)
  FilterEngine narrows the view used by ask() and the CSV export.
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

from .dataset import Dataset, Record
from .errors import ExplorerError
from .exporter import export_csv, export_insights_json, export_summary
from .filter_engine import FilterEngine, FilterSet, make_filter_set
from .insight_generator import Insight, InsightGenerator
from .quality_analyzer import QualityAnalyzer, QualityReport
from .query_responder import QueryAnswer, QueryResponder
from .remediator import Remediator, parse_method
from .type_inference import ColumnType, TypeInference, serialize_types, type_counts

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════
# RESULT TYPES
# ═══════════════════════════════════════════════════════════════

@dataclass
class FixOutcome:
    applied: bool
    method: str
    column: Optional[str] = None
    rows_before: int = 0
    rows_after: int = 0
    missing_before: Optional[int] = None
    missing_after: Optional[int] = None
    error_type: Optional[str] = None
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "applied": self.applied,
            "method": self.method,
            "column": self.column,
            "rows_before": self.rows_before,
            "rows_after": self.rows_after,
            "rows_removed": self.rows_before - self.rows_after,
            "missing_before": self.missing_before,
            "missing_after": self.missing_after,
            "error_type": self.error_type,
            "message": self.message,
        }


# ═══════════════════════════════════════════════════════════════
# SESSION
# ═══════════════════════════════════════════════════════════════

class ExplorerSession:

    def __init__(
        self,
        session_id: Optional[str] = None,
        type_inference: Optional[TypeInference] = None,
        quality_analyzer: Optional[QualityAnalyzer] = None,
        filter_engine: Optional[FilterEngine] = None,
        insight_generator: Optional[InsightGenerator] = None,
        query_responder: Optional[QueryResponder] = None,
    ):
        self.session_id = session_id or uuid4().hex
        self.type_inference = type_inference or TypeInference()
        self.quality_analyzer = quality_analyzer or QualityAnalyzer()
        self.remediator = Remediator(self.quality_analyzer)
        self.filter_engine = filter_engine or FilterEngine()
        self.insight_generator = insight_generator or InsightGenerator()
        self.query_responder = query_responder or QueryResponder()

        self.created_at = time.time()
        self.last_used = self.created_at
        self.reset()

    # ──────────────────────────────────────────────────────────
    # LIFECYCLE
    # ──────────────────────────────────────────────────────────

    def reset(self):
        self.file_name = ""
        self._original = Dataset([])
        self._dataset = Dataset([])
        self._filters: FilterSet = {}
        self._invalidate()

    def load(self, records: Iterable[Record], file_name: str = "") -> Dataset:
        """Replace any prior dataset. Filters are cleared."""
        dataset = Dataset(records, name=file_name)
        self.file_name = file_name
        self._original = dataset
        self._dataset = dataset
        self._filters = {}
        self._invalidate()
        logger.info(
            f"Session {self.session_id}: loaded '{file_name}' "
            f"({dataset.row_count} rows, {dataset.column_count} columns)"
        )
        return dataset

    def restore_original(self):
        self._dataset = self._original
        self._invalidate()
        logger.info(f"Session {self.session_id}: restored original dataset")

    def touch(self):
        self.last_used = time.time()

    def _replace(self, dataset: Dataset):
        self._dataset = dataset
        self._invalidate()

    def _invalidate(self):
        self._column_types: Optional[Dict[str, ColumnType]] = None
        self._quality: Optional[QualityReport] = None
        self._insights: Optional[List[Insight]] = None

    # ──────────────────────────────────────────────────────────
    # DERIVED RESULTS
    # ──────────────────────────────────────────────────────────

    @property
    def dataset(self) -> Dataset:
        return self._dataset

    @property
    def column_types(self) -> Dict[str, ColumnType]:
        if self._column_types is None:
            self._column_types = self.type_inference.classify(self._dataset)
        return self._column_types

    def quality_report(self) -> QualityReport:
        if self._quality is None:
            self._quality = self.quality_analyzer.analyze(self._dataset, self.column_types)
        return self._quality

    def insights(self) -> List[Insight]:
        if self._insights is None:
            self._insights = self.insight_generator.generate(
                self._dataset, self.column_types, self.quality_report()
            )
        return self._insights

    def summary(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "file_name": self.file_name,
            "rows": self._dataset.row_count,
            "columns": self._dataset.columns,
            "column_types": serialize_types(self.column_types),
            "type_counts": type_counts(self.column_types),
            "filtered_rows": len(self.filtered_records()),
            "active_filters": self.filters,
            "modified": self._dataset is not self._original,
        }

    # ──────────────────────────────────────────────────────────
    # FILTERS
    # ──────────────────────────────────────────────────────────

    @property
    def filters(self) -> Dict[str, List[str]]:
        return {c: sorted(v) for c, v in self._filters.items()}

    def set_filter(self, column: str, values: Iterable[Any]):
        self._dataset.require_column(column)
        self._filters.update(make_filter_set({column: values}))

    def remove_filter(self, column: str):
        self._filters.pop(column, None)

    def clear_filters(self):
        self._filters = {}

    def filter_options(self) -> Dict[str, List[str]]:
        return {
            column: self.filter_engine.options(self._dataset, column)
            for column in self.filter_engine.filterable_columns(self.column_types)
        }

    def filtered_records(self) -> List[Record]:
        return self.filter_engine.apply(self._dataset, self._filters)

    def filtered_dataset(self) -> Dataset:
        return self._dataset.with_records(self.filtered_records())

    # ──────────────────────────────────────────────────────────
    # FIXES
    # ──────────────────────────────────────────────────────────

    def apply_fix(self, method: Any, column: Optional[str] = None) -> FixOutcome:
        before = self._dataset
        outcome = FixOutcome(
            applied=False, method=str(getattr(method, "value", method)),
            column=column, rows_before=before.row_count, rows_after=before.row_count,
        )
        try:
            fix = parse_method(method)
            outcome.method = fix.value
            if column:
                before.require_column(column)
                outcome.missing_before = before.missing_count(column)
            after = self.remediator.apply_fix(before, column, fix)
        except ExplorerError as e:
            logger.warning(f"Session {self.session_id}: fix '{outcome.method}' rejected: {e.message}")
            outcome.error_type = e.error_type
            outcome.message = e.message
            return outcome

        self._replace(after)
        outcome.applied = True
        outcome.rows_after = after.row_count
        if column:
            outcome.missing_after = after.missing_count(column)
        target = f" on '{column}'" if column else ""
        outcome.message = f"Applied '{outcome.method}'{target}"
        logger.info(f"Session {self.session_id}: {outcome.message}")
        return outcome

    # ──────────────────────────────────────────────────────────
    # QUESTIONS & EXPORTS
    # ──────────────────────────────────────────────────────────

    def ask(self, question: str) -> QueryAnswer:
        view = self.filtered_dataset()
        if view.is_empty() and not self._dataset.is_empty():
            return QueryAnswer(answer="No rows match the active filters.", intent="no_match")
        return self.query_responder.respond(question, view, self.column_types)

    def export_csv(self) -> str:
        return export_csv(self.filtered_records(), self._dataset.columns)

    def export_summary(self) -> str:
        return export_summary(self._dataset, self.column_types, self.quality_report(), self.file_name)

    def export_insights(self, generated_at: Optional[datetime] = None) -> str:
        return export_insights_json(
            self._dataset, self.column_types, self.quality_report(), self.insights(),
            file_name=self.file_name,
            generated_at=generated_at or datetime.now(timezone.utc),
        )
