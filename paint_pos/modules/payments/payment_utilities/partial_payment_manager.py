"""
payment_utilities/partial_payment_manager.py

Pure helpers to group open sales into customer accounts and to split a single
entered amount across a customer's open bills.

No DB access here. Persistence remains one payment row per bill via the sale
lifecycle manager; this module only decides who gets how much.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, getcontext
from typing import Any, Dict, Iterable, List, Mapping, Optional

from paint_pos.constants import UNKNOWN_CUSTOMER
from paint_pos.database.repositories.errors import ValidationError
from paint_pos.modules.payments.payment_utilities.calculations import (
    ZERO,
    remaining_due,
    to_exact_money,
    to_money,
)

# Keep plenty of precision for intermediate math; quantize only via to_money
getcontext().prec = 28

__all__ = [
    "OpenBill",
    "CustomerAccount",
    "Allocation",
    "consolidate",
    "plan_allocation",
    "sum_outstanding",
]


@dataclass
class OpenBill:
    sale_id: str
    customer_name: str
    customer_phone: str
    total_amount: Decimal
    amount_paid: Decimal
    payment_status: str
    created_at: str
    seq: int = 0

    @property
    def outstanding(self) -> Decimal:
        return remaining_due(self.total_amount, self.amount_paid)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "OpenBill":
        return cls(
            sale_id=row["id"],
            customer_name=row["customer_name"],
            customer_phone=row["customer_phone"],
            total_amount=to_money(row["total_amount"]),
            amount_paid=to_money(row["amount_paid"]),
            payment_status=row["payment_status"],
            created_at=row["created_at"],
            seq=int(row["seq"]) if "seq" in row.keys() else 0,
        )


@dataclass
class CustomerAccount:
    customer_phone: str
    customer_name: str
    bills: List[OpenBill] = field(default_factory=list)
    total_amount: Decimal = ZERO
    total_paid: Decimal = ZERO
    total_outstanding: Decimal = ZERO
    oldest_bill_date: Optional[str] = None

    def add(self, bill: OpenBill) -> None:
        self.bills.append(bill)
        self.total_amount += bill.total_amount
        self.total_paid += bill.amount_paid
        self.total_outstanding += bill.outstanding
        if self.oldest_bill_date is None or bill.created_at < self.oldest_bill_date:
            self.oldest_bill_date = bill.created_at


@dataclass
class Allocation:
    sale_id: str
    amount: Decimal
    outstanding_before: Decimal

    @property
    def outstanding_after(self) -> Decimal:
        return self.outstanding_before - self.amount


def _oldest_key(bill: OpenBill):
    return (bill.created_at or "", bill.seq, bill.sale_id)


def sum_outstanding(bills: Iterable[OpenBill]) -> Decimal:
    return sum((b.outstanding for b in bills), ZERO)


def consolidate(rows: Iterable[Mapping[str, Any] | OpenBill]) -> List[CustomerAccount]:
    """
    Group open sales by customer phone. Paid rows are ignored. Bills inside an
    account are ordered oldest first; accounts keep first-seen order.
    """
    accounts: Dict[str, CustomerAccount] = {}
    for row in rows:
        bill = row if isinstance(row, OpenBill) else OpenBill.from_row(row)
        if bill.payment_status not in ("unpaid", "partial"):
            continue
        acct = accounts.get(bill.customer_phone)
        if acct is None:
            acct = CustomerAccount(
                customer_phone=bill.customer_phone or "",
                customer_name=bill.customer_name or UNKNOWN_CUSTOMER,
            )
            accounts[bill.customer_phone] = acct
        acct.add(bill)
    for acct in accounts.values():
        acct.bills.sort(key=_oldest_key)
    return list(accounts.values())


def plan_allocation(
    bills: Iterable[OpenBill],
    amount: Any,
) -> List[Allocation]:
    """
    Split `amount` across `bills`, oldest first. Each bill receives
    min(remaining, outstanding). The slices sum exactly to `amount`.

    Raises ValidationError if amount is not a whole number of cents, is <= 0,
    or exceeds the total outstanding.
    """
    try:
        requested = to_exact_money(amount)
    except ValueError as exc:
        raise ValidationError("Payment amount must be a number with at most two decimal places") from exc
    if requested <= 0:
        raise ValidationError("Payment amount must be positive")

    work = sorted((b for b in bills if b.outstanding > 0), key=_oldest_key)
    total_outstanding = sum_outstanding(work)
    if requested > total_outstanding:
        raise ValidationError(
            f"Payment amount ({requested}) exceeds outstanding balance ({total_outstanding})",
            details={"amount": str(requested), "totalOutstanding": str(total_outstanding)},
        )

    remaining = requested
    plan: List[Allocation] = []
    for bill in work:
        if remaining <= 0:
            break
        outstanding = bill.outstanding
        applied = remaining if remaining < outstanding else outstanding
        if applied > 0:
            plan.append(Allocation(bill.sale_id, applied, outstanding))
            remaining -= applied
    return plan
