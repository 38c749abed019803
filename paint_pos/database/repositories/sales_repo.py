from __future__ import annotations
from dataclasses import dataclass
import sqlite3
from typing import Any, Dict, Iterable, Optional

from paint_pos.modules.payments.payment_utilities.calculations import (
    money_str,
    recalculate,
    remaining_due,
    to_money,
)
from paint_pos.utils.helpers import new_id, now_iso

from .errors import NotFoundError
from .products_repo import color_detail_from_row, _COLOR_DETAIL_SQL


@dataclass
class Sale:
    id: str
    customer_name: str
    customer_phone: str
    total_amount: str
    amount_paid: str
    payment_status: str
    created_at: str

    @property
    def outstanding(self):
        return remaining_due(self.total_amount, self.amount_paid)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "customerName": self.customer_name,
            "customerPhone": self.customer_phone,
            "totalAmount": self.total_amount,
            "amountPaid": self.amount_paid,
            "paymentStatus": self.payment_status,
            "createdAt": self.created_at,
        }


@dataclass
class SaleItem:
    id: str
    sale_id: str
    color_id: str
    quantity: int
    rate: str
    subtotal: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "saleId": self.sale_id,
            "colorId": self.color_id,
            "quantity": int(self.quantity),
            "rate": self.rate,
            "subtotal": self.subtotal,
        }


_SALE_COLS = "id, customer_name, customer_phone, total_amount, amount_paid, payment_status, created_at"


class SalesRepo:
    """
    Sales repository: row-level reads and writes for sales, sale_items,
    sale_payments and sale_returns.

    Key behavior:
      - total_amount / payment_status are never written directly by callers;
        recalculate_sale() derives both from the current lines and amount_paid.
      - Write helpers do not open transactions of their own. The sale lifecycle
        manager wraps each operation in one unit of work.
    """

    def __init__(self, conn: sqlite3.Connection):
        conn.row_factory = sqlite3.Row
        self.conn = conn

    # ---------------------------------------------------------------------
    # READ: SALES
    # ---------------------------------------------------------------------
    def get_header(self, sale_id: str) -> Sale | None:
        r = self.conn.execute(f"SELECT {_SALE_COLS} FROM sales WHERE id=?", (sale_id,)).fetchone()
        return Sale(**r) if r else None

    def require_header(self, sale_id: str) -> Sale:
        s = self.get_header(sale_id)
        if s is None:
            raise NotFoundError("Sale not found")
        return s

    def list_sales(self) -> list[Sale]:
        rows = self.conn.execute(
            f"SELECT {_SALE_COLS} FROM sales ORDER BY created_at DESC, rowid DESC"
        ).fetchall()
        return [Sale(**r) for r in rows]

    def recent_sales(self, limit: int = 10) -> list[Sale]:
        rows = self.conn.execute(
            f"SELECT {_SALE_COLS} FROM sales ORDER BY created_at DESC, rowid DESC LIMIT ?",
            (max(1, int(limit)),),
        ).fetchall()
        return [Sale(**r) for r in rows]

    def list_unpaid(self) -> list[Sale]:
        """Open sales (unpaid/partial), newest first."""
        rows = self.conn.execute(
            f"SELECT {_SALE_COLS} FROM sales "
            "WHERE payment_status IN ('unpaid','partial') "
            "ORDER BY created_at DESC, rowid DESC"
        ).fetchall()
        return [Sale(**r) for r in rows]

    def open_bill_rows(self, phone: Optional[str] = None) -> list[sqlite3.Row]:
        """
        Raw open-bill rows with rowid as `seq` (tie-breaker for equal timestamps),
        oldest first. Optionally restricted to one phone.
        """
        sql = (
            f"SELECT {_SALE_COLS}, rowid AS seq FROM sales "
            "WHERE payment_status IN ('unpaid','partial')"
        )
        params: tuple = ()
        if phone is not None:
            sql += " AND customer_phone = ?"
            params = (phone,)
        sql += " ORDER BY created_at ASC, rowid ASC"
        return self.conn.execute(sql, params).fetchall()

    def find_open_sale_by_phone(self, phone: str) -> Sale | None:
        """Most recent unpaid/partial sale for `phone` (idx_sales_open_by_phone)."""
        r = self.conn.execute(
            f"SELECT {_SALE_COLS} FROM sales "
            "WHERE customer_phone = ? AND payment_status IN ('unpaid','partial') "
            "ORDER BY created_at DESC, rowid DESC LIMIT 1",
            (phone,),
        ).fetchone()
        return Sale(**r) if r else None

    def count_open_sales(self, phone: str, *, exclude_sale_id: Optional[str] = None) -> int:
        sql = ("SELECT COUNT(*) AS n FROM sales "
               "WHERE customer_phone = ? AND payment_status IN ('unpaid','partial')")
        params: list = [phone]
        if exclude_sale_id:
            sql += " AND id <> ?"
            params.append(exclude_sale_id)
        return int(self.conn.execute(sql, params).fetchone()["n"])

    # ---------------------------------------------------------------------
    # READ: ITEMS
    # ---------------------------------------------------------------------
    def list_items(self, sale_id: str) -> list[SaleItem]:
        rows = self.conn.execute(
            "SELECT id, sale_id, color_id, quantity, rate, subtotal FROM sale_items "
            "WHERE sale_id=? ORDER BY rowid",
            (sale_id,),
        ).fetchall()
        return [SaleItem(**r) for r in rows]

    def get_item(self, item_id: str) -> SaleItem | None:
        r = self.conn.execute(
            "SELECT id, sale_id, color_id, quantity, rate, subtotal FROM sale_items WHERE id=?",
            (item_id,),
        ).fetchone()
        return SaleItem(**r) if r else None

    def require_item(self, item_id: str) -> SaleItem:
        item = self.get_item(item_id)
        if item is None:
            raise NotFoundError("Sale item not found")
        return item

    def get_sale(self, sale_id: str) -> dict | None:
        """Sale with saleItems, each carrying color → variant → product."""
        sale = self.get_header(sale_id)
        if sale is None:
            return None
        colors = {
            r["id"]: color_detail_from_row(r)
            for r in self.conn.execute(
                _COLOR_DETAIL_SQL + " WHERE c.id IN (SELECT color_id FROM sale_items WHERE sale_id=?)",
                (sale_id,),
            ).fetchall()
        }
        items = []
        for it in self.list_items(sale_id):
            d = it.to_dict()
            d["color"] = colors.get(it.color_id)
            items.append(d)
        out = sale.to_dict()
        out["saleItems"] = items
        return out

    def list_payments(self, sale_id: str) -> list[dict]:
        rows = self.conn.execute(
            "SELECT id, sale_id, amount, receipt_ref, notes, created_at FROM sale_payments "
            "WHERE sale_id=? ORDER BY created_at, rowid",
            (sale_id,),
        ).fetchall()
        return [
            {"id": r["id"], "saleId": r["sale_id"], "amount": r["amount"],
             "receiptRef": r["receipt_ref"], "notes": r["notes"], "createdAt": r["created_at"]}
            for r in rows
        ]

    def list_returns(self, sale_id: str) -> list[dict]:
        rows = self.conn.execute(
            "SELECT id, sale_id, sale_item_id, color_id, quantity, rate, amount, reason, created_at "
            "FROM sale_returns WHERE sale_id=? ORDER BY created_at, rowid",
            (sale_id,),
        ).fetchall()
        return [
            {"id": r["id"], "saleId": r["sale_id"], "saleItemId": r["sale_item_id"],
             "colorId": r["color_id"], "quantity": int(r["quantity"]), "rate": r["rate"],
             "amount": r["amount"], "reason": r["reason"], "createdAt": r["created_at"]}
            for r in rows
        ]

    # ---------------------------------------------------------------------
    # WRITE: rows (callers own the transaction)
    # ---------------------------------------------------------------------
    def insert_header(self, customer_name: str, customer_phone: str) -> Sale:
        sale = Sale(new_id(), customer_name, customer_phone, "0.00", "0.00", "paid", now_iso())
        self.conn.execute(
            f"INSERT INTO sales({_SALE_COLS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (sale.id, sale.customer_name, sale.customer_phone, sale.total_amount,
             sale.amount_paid, sale.payment_status, sale.created_at),
        )
        return sale

    def insert_item(self, sale_id: str, color_id: str, quantity: int, rate: Any) -> SaleItem:
        q = int(quantity)
        r = to_money(rate)
        item = SaleItem(new_id(), sale_id, color_id, q, str(r), money_str(r * q))
        self.conn.execute(
            "INSERT INTO sale_items(id, sale_id, color_id, quantity, rate, subtotal) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (item.id, item.sale_id, item.color_id, item.quantity, item.rate, item.subtotal),
        )
        return item

    def update_item_quantity(self, item_id: str, quantity: int) -> SaleItem:
        item = self.require_item(item_id)
        q = int(quantity)
        subtotal = money_str(to_money(item.rate) * q)
        self.conn.execute(
            "UPDATE sale_items SET quantity=?, subtotal=? WHERE id=?", (q, subtotal, item_id)
        )
        item.quantity, item.subtotal = q, subtotal
        return item

    def delete_item(self, item_id: str) -> None:
        self.conn.execute("DELETE FROM sale_items WHERE id=?", (item_id,))

    def add_to_paid(self, sale_id: str, amount: Any) -> None:
        sale = self.require_header(sale_id)
        new_paid = to_money(sale.amount_paid) + to_money(amount)
        self.conn.execute("UPDATE sales SET amount_paid=? WHERE id=?", (money_str(new_paid), sale_id))

    def insert_payment(self, sale_id: str, amount: Any, *, receipt_ref: Optional[str] = None,
                       notes: Optional[str] = None) -> str:
        pid = new_id()
        self.conn.execute(
            "INSERT INTO sale_payments(id, sale_id, amount, receipt_ref, notes, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (pid, sale_id, money_str(amount), receipt_ref, notes, now_iso()),
        )
        return pid

    def insert_return(self, item: SaleItem, quantity: int, reason: str) -> str:
        rid = new_id()
        amount = money_str(to_money(item.rate) * int(quantity))
        self.conn.execute(
            "INSERT INTO sale_returns(id, sale_id, sale_item_id, color_id, quantity, rate, amount, "
            "reason, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (rid, item.sale_id, item.id, item.color_id, int(quantity), item.rate, amount, reason, now_iso()),
        )
        return rid

    def delete_header(self, sale_id: str) -> None:
        # items/payments/returns cascade
        self.conn.execute("DELETE FROM sale_items WHERE sale_id=?", (sale_id,))
        self.conn.execute("DELETE FROM sales WHERE id=?", (sale_id,))

    def recalculate_sale(self, sale_id: str) -> Sale:
        """
        Re-derive total_amount and payment_status from the sale's current lines
        and amount_paid. A sale with no lines has total 0 and is 'paid'.
        """
        sale = self.require_header(sale_id)
        subtotals: Iterable[str] = (
            r["subtotal"]
            for r in self.conn.execute("SELECT subtotal FROM sale_items WHERE sale_id=?", (sale_id,))
        )
        total, status = recalculate(subtotals, sale.amount_paid)
        self.conn.execute(
            "UPDATE sales SET total_amount=?, payment_status=? WHERE id=?",
            (money_str(total), status, sale_id),
        )
        sale.total_amount, sale.payment_status = money_str(total), status
        return sale
