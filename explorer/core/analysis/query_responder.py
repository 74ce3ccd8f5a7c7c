"""
Query Responder — Rule-Based Question Answering
=================================================
Answers free-text questions about the current (filtered) dataset without a
language model. Fully deterministic.

Pipeline:
  1. Lowercase the question
  2. Find the first column (in column order) whose name appears in it
  3. Walk INTENT_RULES in priority order; the first rule whose pattern
     matches AND whose handler produces an answer wins
  4. Otherwise return the help text

Intents (priority order):
  average → sum → max → min → top → summary → correlation → insights
  → distribution → help

Numeric intents validate the column type and answer with guidance instead of
computing over a non-numeric column.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from .dataset import Dataset, format_number, is_missing, to_display
from .descriptive_stats import frequencies, maximum, mean, median, minimum, top_n, total
from .insight_generator import CORRELATION_REPORT, HIGH_MISSING_PCT, numeric_correlations
from .type_inference import ColumnType, columns_of_type

logger = logging.getLogger(__name__)

NO_DATA = "Please upload a dataset first so I can answer your questions!"
NEED_NUMERIC = "Please specify a numeric column name in your question."
HELP_TEXT = (
    "I can help you with:\n"
    "• Statistics (average, sum, min, max)\n"
    "• Top values\n"
    "• Correlations\n"
    "• Data summary\n"
    "• Distribution analysis\n"
    "• Insights\n\n"
    'Try asking "What is the average of [column]?" or "Show me a summary"'
)
TOP_N = 5


# ═══════════════════════════════════════════════════════════════
# INTENT RULES
# ═══════════════════════════════════════════════════════════════

@dataclass
class IntentRule:
    intent: str
    patterns: List[str]
    handler: str

    def matches(self, question: str) -> bool:
        return any(re.search(p, question) for p in self.patterns)


INTENT_RULES: List[IntentRule] = [
    IntentRule("average", [r"\b(average|mean|avg)\b"], "_answer_average"),
    IntentRule("sum", [r"\b(sum|total)\b"], "_answer_sum"),
    IntentRule("max", [r"\b(max|maximum|highest|largest)\b"], "_answer_max"),
    IntentRule("min", [r"\b(min|minimum|lowest|smallest)\b"], "_answer_min"),
    IntentRule("top", [r"\btop\b"], "_answer_top"),
    IntentRule("summary", [r"\b(summary|summari[sz]e|overview)\b"], "_answer_summary"),
    IntentRule("correlation", [r"\bcorrelat\w*", r"\brelationships?\b"], "_answer_correlation"),
    IntentRule("insights", [r"\b(insights?|interesting|findings?)\b"], "_answer_insights"),
    IntentRule("distribution", [r"\b(distribution|distributed)\b"], "_answer_distribution"),
]


@dataclass
class QueryAnswer:
    answer: str
    intent: str
    column: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"answer": self.answer, "intent": self.intent, "column": self.column}


@dataclass
class _Query:
    question: str
    dataset: Dataset
    column_types: Dict[str, ColumnType]
    column: Optional[str] = None
    numeric_columns: List[str] = field(default_factory=list)


# ═══════════════════════════════════════════════════════════════
# RESPONDER
# ═══════════════════════════════════════════════════════════════

class QueryResponder:

    def __init__(self, rules: Optional[List[IntentRule]] = None):
        self.rules = rules if rules is not None else INTENT_RULES

    def answer(self, question: str, dataset: Dataset, column_types: Dict[str, ColumnType]) -> str:
        return self.respond(question, dataset, column_types).answer

    def respond(self, question: str, dataset: Dataset, column_types: Dict[str, ColumnType]) -> QueryAnswer:
        if dataset.is_empty():
            return QueryAnswer(answer=NO_DATA, intent="no_data")

        q_lower = (question or "").lower().strip()
        query = _Query(
            question=q_lower,
            dataset=dataset,
            column_types=column_types,
            column=self.find_column(q_lower, dataset.columns),
            numeric_columns=columns_of_type(column_types, ColumnType.NUMERIC),
        )

        for rule in self.rules:
            if not rule.matches(q_lower):
                continue
            handler: Callable[[_Query], Optional[str]] = getattr(self, rule.handler)
            text = handler(query)
            if text is not None:
                logger.debug(f"Question matched intent '{rule.intent}' (column={query.column})")
                return QueryAnswer(answer=text, intent=rule.intent, column=query.column)

        return QueryAnswer(answer=HELP_TEXT, intent="help", column=query.column)

    @staticmethod
    def find_column(q_lower: str, columns: List[str]) -> Optional[str]:
        for column in columns:
            if column.strip() and column.lower() in q_lower:
                return column
        return None

    # ──────────────────────────────────────────────────────────
    # NUMERIC INTENTS
    # ──────────────────────────────────────────────────────────

    def _numeric_values(self, query: _Query) -> Tuple[List[float], Optional[str]]:
        """Values of the mentioned numeric column, or guidance when there are none."""
        column = query.column
        if column is None:
            return [], NEED_NUMERIC
        column_type = query.column_types.get(column)
        if column_type != ColumnType.NUMERIC:
            kind = column_type.value if column_type else "unknown"
            hint = f" Numeric columns: {', '.join(query.numeric_columns)}." if query.numeric_columns else ""
            return [], f"'{column}' is a {kind} column, not numeric.{hint}"
        values = query.dataset.numeric_values(column)
        if not values:
            return [], f"{column} has no numeric values in the current view."
        return values, None

    def _numeric_answer(self, query: _Query, template: str, stat: Callable[[List[float]], float]) -> str:
        values, guidance = self._numeric_values(query)
        if guidance:
            return guidance
        return template.format(column=query.column, value=stat(values))

    def _answer_average(self, query: _Query) -> str:
        return self._numeric_answer(query, "The average value of {column} is {value:.2f}.", mean)

    def _answer_sum(self, query: _Query) -> str:
        return self._numeric_answer(query, "The total sum of {column} is {value:.2f}.", total)

    def _answer_max(self, query: _Query) -> str:
        return self._numeric_answer(query, "The maximum value of {column} is {value:.2f}.", maximum)

    def _answer_min(self, query: _Query) -> str:
        return self._numeric_answer(query, "The minimum value of {column} is {value:.2f}.", minimum)

    # ──────────────────────────────────────────────────────────
    # FREQUENCY / OVERVIEW INTENTS
    # ──────────────────────────────────────────────────────────

    def _answer_top(self, query: _Query) -> Optional[str]:
        if query.column is None:
            return None
        labels = [to_display(v) or "(empty)" for v in query.dataset.values(query.column)]
        lines = [f"Top {TOP_N} values in {query.column}:"]
        for rank, (value, count) in enumerate(top_n(labels, TOP_N), start=1):
            lines.append(f"{rank}. {value} ({count} occurrences)")
        return "\n".join(lines)

    def _answer_summary(self, query: _Query) -> str:
        ds = query.dataset
        lines = [
            "Dataset Summary:",
            "",
            f"📊 Total Rows: {ds.row_count}",
            f"📋 Total Columns: {ds.column_count}",
        ]
        if query.numeric_columns:
            lines.append("")
            lines.append(f"Numeric Columns ({len(query.numeric_columns)}):")
            for column in query.numeric_columns[:3]:
                avg = mean(ds.numeric_values(column))
                rendered = f"{avg:.2f}" if avg is not None else "n/a"
                lines.append(f"  • {column}: avg = {rendered}")
        return "\n".join(lines)

    def _answer_correlation(self, query: _Query) -> str:
        if len(query.numeric_columns) < 2:
            return "Need at least 2 numeric columns to calculate correlations."
        found = [
            (a, b, r) for a, b, r in numeric_correlations(query.dataset, query.numeric_columns)
            if abs(r) > CORRELATION_REPORT
        ]
        if not found:
            return "No strong correlations found between numeric columns."
        found.sort(key=lambda item: -abs(item[2]))
        lines = ["Strong correlations found:"]
        for a, b, r in found[:3]:
            lines.append(f"{a} ↔ {b}: {r:.2f}")
        return "\n".join(lines)

    def _answer_insights(self, query: _Query) -> str:
        ds = query.dataset
        parts = ["Key Insights:", ""]

        threshold = ds.row_count * HIGH_MISSING_PCT / 100
        sparse = [c for c in ds.columns if ds.missing_count(c) > threshold]
        if sparse:
            parts.append(f"⚠️ Columns with >{HIGH_MISSING_PCT:.0f}% missing data: {', '.join(sparse)}")
            parts.append("")

        for column in query.numeric_columns:
            avg = mean(ds.numeric_values(column))
            if avg is not None:
                parts.append(f"📈 {column} average: {avg:.2f}")
                break

        parts.append("")
        parts.append(f"📊 Dataset has {ds.row_count} rows across {ds.column_count} columns.")
        return "\n".join(parts)

    def _answer_distribution(self, query: _Query) -> Optional[str]:
        column = query.column
        if column is None:
            return None
        ds = query.dataset

        if query.column_types.get(column) == ColumnType.NUMERIC:
            values = ds.numeric_values(column)
            if not values:
                return f"{column} has no numeric values in the current view."
            return (
                f"Distribution of {column}:\n"
                f"Mean: {mean(values):.2f}\n"
                f"Median: {format_number(median(values))}\n"
                f"Min: {format_number(minimum(values))}\n"
                f"Max: {format_number(maximum(values))}"
            )

        present = [to_display(v) for v in ds.values(column) if not is_missing(v)]
        if not present:
            return f"{column} has no values in the current view."
        counts = frequencies(present)
        return (
            f"{column} has {len(counts)} unique values. "
            f"The most common is {counts[0][0]}."
        )
