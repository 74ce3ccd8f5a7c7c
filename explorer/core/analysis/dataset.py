"""
Dataset — Records, Columns, Cell Helpers
==========================================
A Dataset is an ordered sequence of flat records sharing one key set.
Column order is the key order of the first record. Cells keep the value the
parser produced (string, number, None or ""); nothing is normalised here.

Cell semantics shared by every component:
  - missing   : None, or a string that is empty after trimming
  - numeric   : a finite number, or a string holding one in standard decimal
                notation (surrounding whitespace allowed; NaN/Infinity excluded)
  - display   : the string form used for filtering, frequency counts and export
"""

import logging
import math
from typing import Any, Dict, Iterable, List, Optional

from .errors import InputError

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


# ═══════════════════════════════════════════════════════════════
# CELL HELPERS
# ═══════════════════════════════════════════════════════════════

def is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    return False


def is_scalar(value: Any) -> bool:
    return value is None or isinstance(value, (str, int, float, bool))


def parse_number(value: Any) -> Optional[float]:
    """Return the finite float a cell holds, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def to_display(value: Any) -> str:
    """String form of a cell. Missing cells render as ""."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value)


def format_number(value: float) -> str:
    """Compact number rendering for text output (integers without a fraction)."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


# ═══════════════════════════════════════════════════════════════
# DATASET
# ═══════════════════════════════════════════════════════════════

class Dataset:
    """
    Immutable-by-convention record sequence.
    Every transformation returns a new Dataset; records are copied on entry.
    """

    def __init__(self, records: Iterable[Record], name: str = "", columns: Optional[List[str]] = None):
        self._records: List[Record] = [dict(r) for r in records]
        self.name = name
        if self._records:
            self._columns: List[str] = list(self._records[0].keys())
        else:
            # an emptied dataset keeps its header
            self._columns = list(columns or [])
        self._validate()

    def _validate(self):
        expected = set(self._columns)
        for index, record in enumerate(self._records):
            if set(record.keys()) != expected:
                raise InputError(
                    f"Record {index} has columns {sorted(record.keys())}, "
                    f"expected {sorted(expected)}"
                )
            for column, value in record.items():
                if not is_scalar(value):
                    raise InputError(
                        f"Record {index} has a non-scalar value in '{column}': "
                        f"{type(value).__name__}",
                        column=column,
                    )

    # ── Shape ──

    @property
    def records(self) -> List[Record]:
        return self._records

    @property
    def columns(self) -> List[str]:
        return list(self._columns)

    @property
    def row_count(self) -> int:
        return len(self._records)

    @property
    def column_count(self) -> int:
        return len(self._columns)

    def is_empty(self) -> bool:
        return not self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self):
        return iter(self._records)

    def __repr__(self) -> str:
        return f"Dataset(name={self.name!r}, rows={self.row_count}, columns={self.column_count})"

    # ── Column access ──

    def has_column(self, column: str) -> bool:
        return column in self._columns

    def require_column(self, column: str):
        if column not in self._columns:
            raise InputError(f"Column '{column}' not found", column=column)

    def values(self, column: str) -> List[Any]:
        return [r[column] for r in self._records]

    def present_values(self, column: str) -> List[Any]:
        return [r[column] for r in self._records if not is_missing(r[column])]

    def numeric_values(self, column: str) -> List[float]:
        out = []
        for r in self._records:
            number = parse_number(r[column])
            if number is not None:
                out.append(number)
        return out

    def numeric_pairs(self, first: str, second: str) -> List[tuple]:
        pairs = []
        for r in self._records:
            x = parse_number(r[first])
            y = parse_number(r[second])
            if x is not None and y is not None:
                pairs.append((x, y))
        return pairs

    def missing_count(self, column: str) -> int:
        return sum(1 for r in self._records if is_missing(r[column]))

    # ── Derivation ──

    def with_records(self, records: Iterable[Record]) -> "Dataset":
        return Dataset(records, name=self.name, columns=self._columns)
