"""Ordinal grading scale used for averaging."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

ORDINAL_SCALE: dict[str, int] = {"AD": 4, "A": 3, "B": 2, "C": 1}


def scale_weight(value: str) -> int | None:
    """Return the weight of a grade literal, or None if it is not on the scale."""
    return ORDINAL_SCALE.get(value)


def ordinal_mean(values: Iterable[str], decimal_places: int = 2) -> float | None:
    """
    Average grade literals through the ordinal scale.

    Literals outside the scale are skipped. Returns None when nothing is
    left to average, so callers can leave the cell blank instead of
    writing a zero. Halves round up (3.125 -> 3.13).
    """
    weights = [w for w in map(scale_weight, values) if w is not None]
    if not weights:
        return None
    mean = Decimal(sum(weights)) / Decimal(len(weights))
    return float(mean.quantize(Decimal(1).scaleb(-decimal_places), rounding=ROUND_HALF_UP))
