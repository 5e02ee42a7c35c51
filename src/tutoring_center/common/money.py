from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


def round_money(value: float) -> float:
    """Round to whole currency units, halves away from zero (2.5 -> 3)."""
    return float(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def round_cents(value: float) -> float:
    """Normalize float drift on stored balances (0.1 + 0.2 -> 0.3)."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def per_lesson_price(price_paid: float, lessons_total: int) -> float:
    if lessons_total <= 0:
        return 0.0
    return price_paid / lessons_total
