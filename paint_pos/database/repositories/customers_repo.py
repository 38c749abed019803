from __future__ import annotations
import sqlite3

from paint_pos.utils.helpers import fmt_ddmmyyyy

from .sales_repo import Sale, _SALE_COLS


class CustomersRepo:
    """
    Customers are not a table of their own: a customer is the (name, phone)
    pair carried on sales. All queries here group over `sales`.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self.conn.row_factory = sqlite3.Row

    # ---- Internal helpers -------------------------------------------------

    @staticmethod
    def _normalize_text(s: str | None) -> str:
        return (s or "").strip()

    @staticmethod
    def _row(r: sqlite3.Row, *, with_outstanding: bool = False) -> dict:
        out = {
            "customerName": r["customer_name"],
            "customerPhone": r["customer_phone"],
            "lastSaleDate": fmt_ddmmyyyy(r["last_sale"]),
            "totalSpent": round(float(r["total_spent"] or 0)),
        }
        if with_outstanding:
            out["outstandingBalance"] = round(float(r["outstanding"] or 0))
        return out

    # ---- Queries ----------------------------------------------------------

    def suggestions(self, limit: int = 10) -> list[dict]:
        """Recent distinct customers for autocomplete, most recent sale first."""
        rows = self.conn.execute(
            """
            SELECT customer_name, customer_phone,
                   MAX(created_at) AS last_sale,
                   SUM(CAST(total_amount AS REAL)) AS total_spent
            FROM sales
            GROUP BY customer_name, customer_phone
            ORDER BY MAX(created_at) DESC
            LIMIT ?
            """,
            (max(1, int(limit)),),
        ).fetchall()
        return [self._row(r) for r in rows]

    def search(self, term: str) -> list[dict]:
        """
        Name/phone substring search with outstanding balance per customer.
        Empty term returns [].
        """
        t = self._normalize_text(term)
        if not t:
            return []
        like = f"%{t}%"
        rows = self.conn.execute(
            """
            SELECT customer_name, customer_phone,
                   MAX(created_at) AS last_sale,
                   SUM(CAST(total_amount AS REAL)) AS total_spent,
                   SUM(MAX(CAST(total_amount AS REAL) - CAST(amount_paid AS REAL), 0)) AS outstanding
            FROM sales
            WHERE customer_name LIKE ? OR customer_phone LIKE ?
            GROUP BY customer_name, customer_phone
            ORDER BY MAX(created_at) DESC
            """,
            (like, like),
        ).fetchall()
        return [self._row(r, with_outstanding=True) for r in rows]

    def bills(self, phone: str) -> list[Sale]:
        """Every sale for a phone, newest first."""
        rows = self.conn.execute(
            f"SELECT {_SALE_COLS} FROM sales WHERE customer_phone = ? "
            "ORDER BY created_at DESC, rowid DESC",
            (self._normalize_text(phone),),
        ).fetchall()
        return [Sale(**r) for r in rows]
