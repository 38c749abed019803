# paint_pos/database/repositories/dashboard_repo.py
from __future__ import annotations

import sqlite3
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from paint_pos.constants import (
    DEFAULT_LOW_STOCK_THRESHOLD,
    MONTHLY_CHART_DAYS,
    RECENT_SALES_LIMIT,
)

from .sales_repo import SalesRepo


def _to_float(x: Optional[Any]) -> float:
    try:
        return round(float(x or 0.0), 2)
    except (TypeError, ValueError):
        return 0.0


class DashboardRepo:
    """
    Thin query layer for the dashboard. All methods are read-only.

    Performance note:
    - sales.created_at is ISO text, so range filters compare strings directly
      (created_at >= 'YYYY-MM-DD') and stay eligible for idx_sales_created_at.
    - No SQLite clock inside filters; the caller's `now` decides "today".
    """

    def __init__(self, conn: sqlite3.Connection, *, low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD) -> None:
        self.conn = conn
        self.conn.row_factory = sqlite3.Row
        self.low_stock_threshold = int(low_stock_threshold)

    # ----------------------------- Sales -----------------------------

    def sales_summary(self, since: str) -> Dict[str, float | int]:
        r = self.conn.execute(
            """
            SELECT COALESCE(SUM(CAST(total_amount AS REAL)), 0.0) AS revenue,
                   COUNT(*) AS transactions
            FROM sales
            WHERE created_at >= ?
            """,
            (since,),
        ).fetchone()
        return {"revenue": _to_float(r["revenue"]), "transactions": int(r["transactions"] or 0)}

    def daily_revenue(self, today: date, days: int = MONTHLY_CHART_DAYS) -> List[Dict[str, Any]]:
        """One point per day for the last `days` days (today included), zero-filled."""
        start = today - timedelta(days=days - 1)
        rows = self.conn.execute(
            """
            SELECT SUBSTR(created_at, 1, 10) AS d,
                   COALESCE(SUM(CAST(total_amount AS REAL)), 0.0) AS revenue
            FROM sales
            WHERE created_at >= ?
            GROUP BY SUBSTR(created_at, 1, 10)
            """,
            (start.isoformat(),),
        ).fetchall()
        by_day = {r["d"]: _to_float(r["revenue"]) for r in rows}
        out = []
        for i in range(days):
            d = start + timedelta(days=i)
            out.append({"date": d.strftime("%d-%m-%Y"), "revenue": by_day.get(d.isoformat(), 0.0)})
        return out

    # ----------------------------- Inventory -----------------------------

    def inventory_summary(self) -> Dict[str, float | int]:
        def count(sql: str, params: Tuple = ()) -> int:
            return int(self.conn.execute(sql, params).fetchone()[0] or 0)

        stock_value = self.conn.execute(
            """
            SELECT COALESCE(SUM(c.stock_quantity * CAST(v.rate AS REAL)), 0.0)
            FROM colors c JOIN variants v ON v.id = c.variant_id
            """
        ).fetchone()[0]
        return {
            "totalProducts": count("SELECT COUNT(*) FROM products"),
            "totalVariants": count("SELECT COUNT(*) FROM variants"),
            "totalColors": count("SELECT COUNT(*) FROM colors"),
            "lowStock": count(
                "SELECT COUNT(*) FROM colors WHERE stock_quantity > 0 AND stock_quantity < ?",
                (self.low_stock_threshold,),
            ),
            "totalStockValue": _to_float(stock_value),
        }

    # ----------------------------- Receivables -----------------------------

    def unpaid_summary(self) -> Dict[str, float | int]:
        r = self.conn.execute(
            """
            SELECT COUNT(*) AS n,
                   COALESCE(SUM(CAST(total_amount AS REAL) - CAST(amount_paid AS REAL)), 0.0) AS owed
            FROM sales
            WHERE payment_status IN ('unpaid','partial')
            """
        ).fetchone()
        return {"count": int(r["n"] or 0), "totalAmount": _to_float(r["owed"])}

    # ----------------------------- Composite -----------------------------

    def stats(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.now()
        today = now.date()
        return {
            "todaySales": self.sales_summary(today.isoformat()),
            "monthlySales": self.sales_summary(today.replace(day=1).isoformat()),
            "inventory": self.inventory_summary(),
            "unpaidBills": self.unpaid_summary(),
            "recentSales": [s.to_dict() for s in SalesRepo(self.conn).recent_sales(RECENT_SALES_LIMIT)],
            "monthlyChart": self.daily_revenue(today),
        }

    @staticmethod
    def empty_stats() -> Dict[str, Any]:
        return {
            "todaySales": {"revenue": 0, "transactions": 0},
            "monthlySales": {"revenue": 0, "transactions": 0},
            "inventory": {"totalProducts": 0, "totalVariants": 0, "totalColors": 0,
                          "lowStock": 0, "totalStockValue": 0},
            "unpaidBills": {"count": 0, "totalAmount": 0},
            "recentSales": [],
            "monthlyChart": [],
        }
