from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like a spreadsheet does (2.5 -> 3), not banker's rounding."""
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def average(total: float, count: int, digits: int = 2) -> float:
    return round_half_up(total / count, digits) if count else 0


def percentage(part: float, whole: float) -> int:
    return int(round_half_up(part / whole * 100)) if whole else 0
