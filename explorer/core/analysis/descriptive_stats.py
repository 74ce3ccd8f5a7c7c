"""
Descriptive Statistics — Pure Functions
=========================================
Mean, median, mode, nearest-rank quartiles, IQR fences, Pearson correlation
and frequency counts. No side effects; callers drop missing/NaN values first.

Degenerate inputs never raise:
  - mean / median / mode / quartiles / minimum / maximum of [] → None
  - pearson_correlation with a constant variable or < 1 pair  → 0.0

Mode tie-break: the value encountered first among those with the highest
frequency (Counter.most_common keeps insertion order for equal counts).
"""

import math
from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, Hashable, List, Optional, Sequence, Tuple


@dataclass
class IQRBounds:
    q1: float
    q3: float
    iqr: float
    lower: float
    upper: float

    def contains(self, value: float) -> bool:
        return self.lower <= value <= self.upper

    def clamp(self, value: float) -> float:
        return min(max(value, self.lower), self.upper)

    def to_dict(self) -> Dict[str, float]:
        return {
            "q1": self.q1,
            "q3": self.q3,
            "iqr": self.iqr,
            "lower_bound": self.lower,
            "upper_bound": self.upper,
        }


def mean(xs: Sequence[float]) -> Optional[float]:
    if not xs:
        return None
    return math.fsum(xs) / len(xs)


def total(xs: Sequence[float]) -> float:
    return math.fsum(xs)


def minimum(xs: Sequence[float]) -> Optional[float]:
    return min(xs) if xs else None


def maximum(xs: Sequence[float]) -> Optional[float]:
    return max(xs) if xs else None


def median(xs: Sequence[float]) -> Optional[float]:
    """Middle of the (stable) sorted values; mean of the two middles for even n."""
    if not xs:
        return None
    ordered = sorted(xs)
    n = len(ordered)
    mid = n // 2
    if n % 2:
        return ordered[mid]
    return (ordered[mid - 1] + ordered[mid]) / 2


def mode(xs: Sequence[Hashable]) -> Optional[Any]:
    if not xs:
        return None
    return Counter(xs).most_common(1)[0][0]


def frequencies(xs: Sequence[Hashable]) -> List[Tuple[Any, int]]:
    """(value, count) pairs sorted by count desc; ties keep first-encounter order."""
    return Counter(xs).most_common()


def top_n(xs: Sequence[Hashable], n: int = 5) -> List[Tuple[Any, int]]:
    return frequencies(xs)[:n]


def quartiles(xs: Sequence[float]) -> Optional[Tuple[float, float]]:
    """Nearest-rank Q1/Q3: sorted[floor(0.25n)], sorted[floor(0.75n)]."""
    if not xs:
        return None
    ordered = sorted(xs)
    n = len(ordered)
    return ordered[math.floor(0.25 * n)], ordered[math.floor(0.75 * n)]


def iqr_bounds(q1: float, q3: float, multiplier: float = 1.5) -> IQRBounds:
    iqr = q3 - q1
    return IQRBounds(
        q1=q1, q3=q3, iqr=iqr,
        lower=q1 - multiplier * iqr,
        upper=q3 + multiplier * iqr,
    )


def pearson_correlation(pairs: Sequence[Tuple[float, float]]) -> float:
    n = len(pairs)
    if n == 0:
        return 0.0

    mean_x = math.fsum(p[0] for p in pairs) / n
    mean_y = math.fsum(p[1] for p in pairs) / n
    s_xx = math.fsum((p[0] - mean_x) ** 2 for p in pairs)
    s_yy = math.fsum((p[1] - mean_y) ** 2 for p in pairs)
    s_xy = math.fsum((p[0] - mean_x) * (p[1] - mean_y) for p in pairs)

    # constant variable: rounding residue counts as zero spread
    if _negligible(s_xx, pairs, 0) or _negligible(s_yy, pairs, 1):
        return 0.0
    r = s_xy / math.sqrt(s_xx * s_yy)
    return max(-1.0, min(1.0, r))


def _negligible(spread: float, pairs: Sequence[Tuple[float, float]], axis: int) -> bool:
    scale = math.fsum(p[axis] * p[axis] for p in pairs)
    return spread <= 1e-12 * scale
