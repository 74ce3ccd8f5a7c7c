"""
Filter Engine — Column → Allowed-Values Constraints
=====================================================
A record passes when, for every constrained column, its string-coerced cell
is in that column's allowed set. Unconstrained columns impose nothing.

Empty allowed set: with the default empty_selection="none" the column
excludes every row (the user deselected all options); "all" treats it as
unconstrained.
"""

import logging
from typing import Dict, Iterable, List, Set

from .dataset import Dataset, Record, is_missing, to_display
from .errors import InputError
from .type_inference import ColumnType

logger = logging.getLogger(__name__)

FilterSet = Dict[str, Set[str]]

FILTERABLE_TYPES = (ColumnType.CATEGORICAL, ColumnType.TEXT)


def make_filter_set(constraints: Dict[str, Iterable]) -> FilterSet:
    """Normalise user input into a FilterSet of display strings."""
    return {column: {to_display(v) for v in values} for column, values in constraints.items()}


class FilterEngine:

    def __init__(self, empty_selection: str = "none"):
        if empty_selection not in ("none", "all"):
            raise InputError(f"empty_selection must be 'none' or 'all', got '{empty_selection}'")
        self.empty_selection = empty_selection

    def apply(self, dataset: Dataset, filter_set: FilterSet) -> List[Record]:
        active = self._active_constraints(filter_set)
        if not active:
            return [dict(r) for r in dataset.records]
        for column in active:
            dataset.require_column(column)
        return [dict(r) for r in dataset.records if self._passes(r, active)]

    def _active_constraints(self, filter_set: FilterSet) -> FilterSet:
        if self.empty_selection == "all":
            return {c: allowed for c, allowed in filter_set.items() if allowed}
        return dict(filter_set)

    @staticmethod
    def _passes(record: Record, constraints: FilterSet) -> bool:
        for column, allowed in constraints.items():
            if to_display(record[column]) not in allowed:
                return False
        return True

    # ──────────────────────────────────────────────────────────
    # FILTER OPTIONS
    # ──────────────────────────────────────────────────────────

    @staticmethod
    def filterable_columns(column_types: Dict[str, ColumnType]) -> List[str]:
        return [c for c, t in column_types.items() if t in FILTERABLE_TYPES]

    @staticmethod
    def options(dataset: Dataset, column: str) -> List[str]:
        """Distinct non-missing values in first-encounter order."""
        dataset.require_column(column)
        seen = {}
        for value in dataset.values(column):
            if is_missing(value):
                continue
            seen.setdefault(to_display(value), None)
        return list(seen)
