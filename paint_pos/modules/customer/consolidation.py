"""
modules/customer/consolidation.py

One running tab per phone: group open bills into customer accounts and apply a
single customer payment across them, oldest bill first, as one transaction.
"""
from __future__ import annotations

import sqlite3
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from ...database import immediate_tx
from ...database.repositories.errors import NotFoundError
from ...database.repositories.queries import AccountFilter
from ...database.repositories.sales_repo import Sale, SalesRepo
from ...utils.loggers import get_logger
from ..payments.payment_utilities.calculations import ZERO
from ..payments.payment_utilities.partial_payment_manager import (
    CustomerAccount,
    OpenBill,
    consolidate,
    plan_allocation,
)
from ..sales.lifecycle import SaleLifecycleManager

_log = get_logger("paint_pos.customers")

OVERDUE_DAYS = 30
RECENT_DAYS = 7
SMALL_LIMIT = 1000
MEDIUM_LIMIT = 5000


def bill_to_dict(bill: OpenBill) -> Dict[str, Any]:
    return {
        "id": bill.sale_id,
        "customerName": bill.customer_name,
        "customerPhone": bill.customer_phone,
        "totalAmount": str(bill.total_amount),
        "amountPaid": str(bill.amount_paid),
        "outstanding": str(bill.outstanding),
        "paymentStatus": bill.payment_status,
        "createdAt": bill.created_at,
    }


def account_to_dict(acct: CustomerAccount) -> Dict[str, Any]:
    return {
        "customerName": acct.customer_name,
        "customerPhone": acct.customer_phone,
        "bills": [bill_to_dict(b) for b in acct.bills],
        "totalAmount": str(acct.total_amount),
        "totalPaid": str(acct.total_paid),
        "totalOutstanding": str(acct.total_outstanding),
        "oldestBillDate": acct.oldest_bill_date,
    }


def matches_filter(acct: CustomerAccount, flt: AccountFilter, *, now: Optional[datetime] = None) -> bool:
    now = now or datetime.now()
    if flt.search:
        q = flt.search.lower()
        if q not in (acct.customer_name or "").lower() and flt.search not in (acct.customer_phone or ""):
            return False
    oldest = datetime.fromisoformat(acct.oldest_bill_date) if acct.oldest_bill_date else now
    if flt.status == "overdue" and not oldest < now - timedelta(days=OVERDUE_DAYS):
        return False
    if flt.status == "recent" and not oldest >= now - timedelta(days=RECENT_DAYS):
        return False
    owed = acct.total_outstanding
    if flt.amount == "small" and not owed <= SMALL_LIMIT:
        return False
    if flt.amount == "medium" and not (SMALL_LIMIT < owed <= MEDIUM_LIMIT):
        return False
    if flt.amount == "large" and not owed > MEDIUM_LIMIT:
        return False
    return True


class BillConsolidationEngine:
    def __init__(self, conn: sqlite3.Connection, lifecycle: Optional[SaleLifecycleManager] = None):
        self.conn = conn
        self.sales = SalesRepo(conn)
        self.lifecycle = lifecycle or SaleLifecycleManager(conn)

    def find_open_sale_by_phone(self, phone: str) -> Optional[Sale]:
        return self.sales.find_open_sale_by_phone(phone)

    def list_accounts(self, flt: Optional[AccountFilter] = None) -> List[CustomerAccount]:
        accounts = consolidate(self.sales.open_bill_rows())
        if flt is None:
            return accounts
        return [a for a in accounts if matches_filter(a, flt)]

    def get_account(self, phone: str) -> CustomerAccount:
        accounts = consolidate(self.sales.open_bill_rows(phone))
        if not accounts:
            raise NotFoundError("No open bills for this customer")
        return accounts[0]

    def allocate_payment(self, phone: str, amount: Any, *, notes: Optional[str] = None) -> Dict[str, Any]:
        """
        Apply `amount` across the phone's open bills, oldest first.

        All slices share one receipt reference and commit together; a failure
        on any bill rolls back every slice. Raises ValidationError when
        amount <= 0 or amount exceeds the total outstanding.
        """
        receipt_ref = f"RCPT-{uuid.uuid4().hex[:12].upper()}"
        with immediate_tx(self.conn):
            accounts = consolidate(self.sales.open_bill_rows(phone))
            bills = accounts[0].bills if accounts else []
            plan = plan_allocation(bills, amount)
            applied = []
            for slice_ in plan:
                sale = self.lifecycle.update_sale_payment(
                    slice_.sale_id, slice_.amount, receipt_ref=receipt_ref, notes=notes,
                )
                applied.append({
                    "saleId": sale.id,
                    "amount": str(slice_.amount),
                    "paymentStatus": sale.payment_status,
                    "outstanding": str(sale.outstanding),
                })
            total = sum((s.amount for s in plan), ZERO)
        _log.info("Allocated %s across %d bill(s) for %s (%s)", total, len(plan), phone, receipt_ref)
        remaining = consolidate(self.sales.open_bill_rows(phone))
        return {
            "receiptRef": receipt_ref,
            "amount": str(total),
            "allocations": applied,
            "account": account_to_dict(remaining[0]) if remaining else None,
        }
