"""
Insight Generator — Canned-Rule Dataset Narrative
===================================================
Composes type, statistics and quality results into a fixed, ordered set of
findings. Deterministic: same inputs, same insights.

Slots (each conditionally emitted, always in this order):
  IN-001  Overview       — rows, columns, numeric vs categorical counts
  IN-002  Completeness   — % populated cells; success >95, warning >80, else error
  IN-003  Numeric        — first numeric column range/mean; high variability if range > 2×mean
  IN-004  Categorical    — first categorical column's top value and its share
  IN-005  Correlation    — strongest numeric pair; reported if |r| > 0.5, "strong" if > 0.7
  IN-006  Duplicates     — duplicate row count and share

`action` names the quality section a renderer can link to:
missing | duplicates | outliers.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .dataset import Dataset, to_display
from .descriptive_stats import frequencies, maximum, mean, minimum, pearson_correlation
from .quality_analyzer import QualityReport
from .type_inference import ColumnType, columns_of_type

logger = logging.getLogger(__name__)

HIGH_MISSING_PCT = 10.0
CORRELATION_REPORT = 0.5
CORRELATION_STRONG = 0.7


# ═══════════════════════════════════════════════════════════════
# INSIGHT DATA CLASS
# ═══════════════════════════════════════════════════════════════

@dataclass
class Insight:
    severity: str                      # success | info | warning | error
    icon: str
    category: str
    title: str
    message: str
    action: Optional[str] = None       # missing | duplicates | outliers
    metric_key: Optional[str] = None
    metric_value: Optional[float] = None
    evidence: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    rule_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity,
            "icon": self.icon,
            "category": self.category,
            "title": self.title,
            "message": self.message,
            "action": self.action,
            "metric_key": self.metric_key,
            "metric_value": self.metric_value,
            "evidence": self.evidence,
            "tags": self.tags,
            "rule_id": self.rule_id,
        }


def numeric_correlations(dataset: Dataset, columns: List[str]) -> List[Tuple[str, str, float]]:
    """Pearson r for every pair of the given columns, in pair-discovery order."""
    out = []
    for i, first in enumerate(columns):
        for second in columns[i + 1:]:
            r = pearson_correlation(dataset.numeric_pairs(first, second))
            out.append((first, second, r))
    return out


# ═══════════════════════════════════════════════════════════════
# GENERATOR
# ═══════════════════════════════════════════════════════════════

class InsightGenerator:

    def generate(
        self,
        dataset: Dataset,
        column_types: Dict[str, ColumnType],
        quality: QualityReport,
    ) -> List[Insight]:
        insights: List[Insight] = []
        if dataset.is_empty():
            return insights

        self._overview(dataset, column_types, insights)
        self._completeness(quality, insights)
        self._numeric_summary(dataset, column_types, quality, insights)
        self._top_category(dataset, column_types, insights)
        self._correlation(dataset, column_types, insights)
        self._duplicates(quality, insights)

        logger.debug(f"Generated {len(insights)} insights for {dataset!r}")
        return insights

    # ── IN-001 ──

    def _overview(self, dataset: Dataset, types: Dict[str, ColumnType], out: List[Insight]):
        numeric = len(columns_of_type(types, ColumnType.NUMERIC))
        categorical = len(columns_of_type(types, ColumnType.CATEGORICAL))
        out.append(Insight(
            severity="success", icon="📊", category="Overview",
            title="Dataset Overview",
            message=(
                f"Your dataset contains {dataset.row_count} rows and "
                f"{dataset.column_count} columns, including {numeric} numeric "
                f"and {categorical} categorical columns."
            ),
            metric_key="rows", metric_value=float(dataset.row_count),
            tags=["overview"], rule_id="IN-001",
        ))

    # ── IN-002 ──

    def _completeness(self, quality: QualityReport, out: List[Insight]):
        pct = quality.completeness
        if pct > 95:
            severity, icon = "success", "✅"
        elif pct > 80:
            severity, icon = "warning", "⚠️"
        else:
            severity, icon = "error", "❌"

        message = (
            f"{pct:.1f}% of cells are populated "
            f"({quality.missing_cells} of {quality.total_cells} cells missing)."
        )
        high = [m.column for m in quality.columns_with_missing() if m.percentage > HIGH_MISSING_PCT]
        if high:
            message += (
                f" {len(high)} columns have more than {HIGH_MISSING_PCT:.0f}% missing data: "
                f"{', '.join(high)}. Consider cleaning or imputing these values."
            )
        elif quality.missing_cells == 0:
            message += " The data is complete and ready for analysis."

        out.append(Insight(
            severity=severity, icon=icon, category="Data Quality",
            title="Data Completeness", message=message,
            action="missing" if quality.missing_cells else None,
            metric_key="completeness_pct", metric_value=round(pct, 1),
            evidence=", ".join(high) or None,
            tags=["quality", "missing"], rule_id="IN-002",
        ))

    # ── IN-003 ──

    def _numeric_summary(self, dataset: Dataset, types: Dict[str, ColumnType],
                         quality: QualityReport, out: List[Insight]):
        for column in columns_of_type(types, ColumnType.NUMERIC):
            values = dataset.numeric_values(column)
            if not values:
                continue
            avg, low, high = mean(values), minimum(values), maximum(values)
            spread = high - low
            volatile = spread > 2 * avg

            message = f"Average: {avg:.2f}. Range: {low:.2f} to {high:.2f}."
            if volatile:
                message += (
                    f" The range ({spread:.2f}) is more than twice the mean, "
                    f"indicating high variability."
                )
            out.append(Insight(
                severity="warning" if volatile else "info", icon="📈",
                category="Statistics", title=f"{column} Statistics", message=message,
                action="outliers" if column in quality.outliers else None,
                metric_key=f"{column}.mean", metric_value=avg,
                evidence=f"min={low}, max={high}",
                tags=["numeric"] + (["high_variability"] if volatile else []),
                rule_id="IN-003",
            ))
            return

    # ── IN-004 ──

    def _top_category(self, dataset: Dataset, types: Dict[str, ColumnType], out: List[Insight]):
        for column in columns_of_type(types, ColumnType.CATEGORICAL):
            present = [to_display(v) for v in dataset.present_values(column)]
            if not present:
                continue
            counts = frequencies(present)
            top_value, top_count = counts[0]
            share = top_count / len(present) * 100
            out.append(Insight(
                severity="info", icon="🏷️", category="Distribution",
                title="Most Frequent Category",
                message=(
                    f"{column} has {len(counts)} unique categories. The most frequent is "
                    f"'{top_value}' ({top_count} rows, {share:.1f}% of non-missing values)."
                ),
                metric_key=f"{column}.top_share_pct", metric_value=round(share, 1),
                evidence=f"{top_value}={top_count}",
                tags=["categorical"], rule_id="IN-004",
            ))
            return

    # ── IN-005 ──

    def _correlation(self, dataset: Dataset, types: Dict[str, ColumnType], out: List[Insight]):
        numeric = columns_of_type(types, ColumnType.NUMERIC)
        if len(numeric) < 2:
            return

        best: Optional[Tuple[str, str, float]] = None
        for first, second, r in numeric_correlations(dataset, numeric):
            if best is None or abs(r) > abs(best[2]):
                best = (first, second, r)

        first, second, r = best
        if abs(r) <= CORRELATION_REPORT:
            return
        strength = "strong" if abs(r) > CORRELATION_STRONG else "moderate"
        direction = "positive" if r > 0 else "negative"
        out.append(Insight(
            severity="info", icon="🔗", category="Correlation",
            title=f"{strength.capitalize()} Correlation Found",
            message=(
                f"{first} and {second} show a {strength} {direction} correlation "
                f"({r:.2f}). These variables are likely related."
            ),
            metric_key=f"{first}~{second}", metric_value=r,
            tags=["correlation", strength], rule_id="IN-005",
        ))

    # ── IN-006 ──

    def _duplicates(self, quality: QualityReport, out: List[Insight]):
        if quality.duplicate_count == 0:
            return
        out.append(Insight(
            severity="warning", icon="🔄", category="Data Quality",
            title="Duplicate Rows Detected",
            message=(
                f"Found {quality.duplicate_count} duplicate rows "
                f"({quality.duplicate_percentage:.1f}% of the dataset). Consider removing "
                f"duplicates to improve data quality and analysis accuracy."
            ),
            action="duplicates",
            metric_key="duplicate_rows", metric_value=float(quality.duplicate_count),
            tags=["quality", "duplicates"], rule_id="IN-006",
        ))
