"""
Tabular Explorer — Analysis Engine
====================================
Column-type inference and statistical analysis for uploaded tabular data.

Components:
  ┌──────────────────────────────────────────────────────┐
  │ ExplorerSession   — Single entry point, owns state   │
  │ TypeInference     — numeric/date/categorical/text    │
  │ descriptive_stats — mean/median/mode/IQR/Pearson     │
  │ QualityAnalyzer   — missing, duplicates, outliers    │
  │ Remediator        — imputation & cleanup fixes       │
  │ FilterEngine      — column → allowed-values views    │
  │ InsightGenerator  — fixed-slot findings narrative    │
  │ QueryResponder    — rule-based question answering    │
  │ exporter          — CSV / text summary / JSON        │
  └──────────────────────────────────────────────────────┘

Usage:
  from explorer.core.analysis import ExplorerSession
  session = ExplorerSession()
  session.load(records, file_name="sales.csv")
  session.quality_report().to_dict()
  session.ask("what is the average of revenue?")
"""

from .dataset import Dataset, Record, is_missing, parse_number, to_display
from .errors import DegenerateComputationError, ExplorerError, InputError
from .type_inference import ColumnType, TypeInference
from . import descriptive_stats
from .quality_analyzer import MissingValueInfo, OutlierInfo, QualityAnalyzer, QualityReport
from .remediator import FixMethod, Remediator
from .filter_engine import FilterEngine, FilterSet, make_filter_set
from .insight_generator import Insight, InsightGenerator
from .query_responder import INTENT_RULES, IntentRule, QueryAnswer, QueryResponder
from . import exporter
from .session import ExplorerSession, FixOutcome

__all__ = [
    "ExplorerSession", "FixOutcome",
    "Dataset", "Record", "is_missing", "parse_number", "to_display",
    "ExplorerError", "InputError", "DegenerateComputationError",
    "ColumnType", "TypeInference",
    "descriptive_stats",
    "QualityAnalyzer", "QualityReport", "MissingValueInfo", "OutlierInfo",
    "Remediator", "FixMethod",
    "FilterEngine", "FilterSet", "make_filter_set",
    "InsightGenerator", "Insight",
    "QueryResponder", "QueryAnswer", "IntentRule", "INTENT_RULES",
    "exporter",
]
