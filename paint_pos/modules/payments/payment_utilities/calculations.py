"""
payment_utilities/calculations.py

Pure money helpers for sale totals and payment status.

Do not import repos or open DB connections here. All amounts are Decimal,
quantized to 0.01 with half-up rounding; callers may pass str/int/float/Decimal.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable, Tuple

from paint_pos.constants import MONEY_QUANT

__all__ = [
    "ZERO",
    "to_money",
    "to_exact_money",
    "money_str",
    "clamp_non_negative",
    "line_subtotal",
    "sale_total",
    "remaining_due",
    "status_from_paid",
    "recalculate",
]

ZERO = Decimal("0.00")


# -----------------------------
# Core utilities
# -----------------------------

def _parse_decimal(x: Any) -> Decimal:
    if isinstance(x, Decimal):
        d = x
    else:
        if x is None or isinstance(x, bool):
            raise ValueError(f"Could not parse {x!r} as an amount.")
        try:
            d = Decimal(str(x).strip())
        except (InvalidOperation, ValueError) as exc:
            raise ValueError(f"Could not parse {x!r} as an amount.") from exc
    if not d.is_finite():
        raise ValueError(f"Could not parse {x!r} as an amount.")
    return d


def to_money(x: Any) -> Decimal:
    """
    Parse and quantize to 0.01 (ROUND_HALF_UP). Floats go through str() so
    12.1 becomes Decimal('12.10'), not its binary expansion.
    Raises ValueError on unparseable input.
    """
    return _parse_decimal(x).quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def to_exact_money(x: Any) -> Decimal:
    """
    Parse an entered amount without rounding it. Raises ValueError when the
    value carries a fraction of a cent (10.006), so what is applied is what
    was entered.
    """
    d = _parse_decimal(x)
    q = d.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)
    if q != d:
        raise ValueError(f"{x!r} has more than two decimal places.")
    return q


def money_str(x: Any) -> str:
    """Storage/wire form: '1250.00'."""
    return str(to_money(x))


def clamp_non_negative(x: Decimal) -> Decimal:
    return x if x > 0 else ZERO


# -----------------------------
# Sale helpers
# -----------------------------

def line_subtotal(quantity: int, rate: Any) -> Decimal:
    """subtotal = quantity × rate; the client-sent subtotal is never trusted."""
    return to_money(Decimal(int(quantity)) * to_money(rate))


def sale_total(subtotals: Iterable[Any]) -> Decimal:
    total = ZERO
    for s in subtotals:
        total += to_money(s)
    return to_money(total)


def remaining_due(total: Any, paid: Any) -> Decimal:
    """Outstanding = total − paid, clamped at >= 0."""
    return clamp_non_negative(to_money(total) - to_money(paid))


def status_from_paid(total: Any, paid: Any) -> str:
    """
    Status rules:
      - 'paid'    if paid >= total (a zero total is always 'paid')
      - 'partial' if 0 < paid < total
      - 'unpaid'  if paid == 0
    """
    t = to_money(total)
    p = to_money(paid)
    if t <= 0 or p >= t:
        return "paid"
    if p > 0:
        return "partial"
    return "unpaid"


def recalculate(subtotals: Iterable[Any], amount_paid: Any) -> Tuple[Decimal, str]:
    """(total_amount, payment_status) for a sale's current lines and paid amount."""
    total = sale_total(subtotals)
    return total, status_from_paid(total, amount_paid)

