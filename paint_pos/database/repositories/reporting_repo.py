# paint_pos/database/repositories/reporting_repo.py
from __future__ import annotations

import sqlite3
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from paint_pos.utils.helpers import fmt_ddmmyyyy

from .errors import ValidationError
from .inventory_repo import InventoryRepo
from .queries import GROUP_BY_CHOICES, InventoryReportQuery, SalesReportQuery

_PERIOD_EXPR = {
    "day": "SUBSTR(created_at, 1, 10)",
    "week": "strftime('%Y-W%W', created_at)",
    "month": "SUBSTR(created_at, 1, 7)",
}


def _parse_day(value: Optional[str], label: str) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(f"{label} must be a date in YYYY-MM-DD format") from exc


class ReportingRepo:
    """Read-only report queries. Amounts in report payloads are plain numbers rounded to 2 places."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self.conn.row_factory = sqlite3.Row

    # ----------------------------- Sales -----------------------------

    def sales_report(self, q: SalesReportQuery) -> Dict[str, Any]:
        if q.group_by not in GROUP_BY_CHOICES:
            raise ValidationError(f"groupBy must be one of: {', '.join(GROUP_BY_CHOICES)}")
        start = _parse_day(q.start_date, "startDate")
        end = _parse_day(q.end_date, "endDate")
        if start and end and start > end:
            raise ValidationError("startDate must not be after endDate")

        where: List[str] = []
        params: List[Any] = []
        if start:
            where.append("created_at >= ?")
            params.append(start.isoformat())
        if end:
            where.append("created_at < ?")
            params.append((end + timedelta(days=1)).isoformat())

        period = _PERIOD_EXPR[q.group_by]
        sql = f"""
            SELECT {period} AS period,
                   COUNT(*) AS transactions,
                   COALESCE(SUM(CAST(total_amount AS REAL)), 0.0) AS revenue,
                   COALESCE(SUM(CAST(amount_paid AS REAL)), 0.0) AS collected,
                   COALESCE(SUM(MAX(CAST(total_amount AS REAL) - CAST(amount_paid AS REAL), 0)), 0.0) AS outstanding
            FROM sales
        """
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += f" GROUP BY {period} ORDER BY period"

        periods = [
            {
                "period": r["period"],
                "transactions": int(r["transactions"]),
                "revenue": round(float(r["revenue"]), 2),
                "collected": round(float(r["collected"]), 2),
                "outstanding": round(float(r["outstanding"]), 2),
            }
            for r in self.conn.execute(sql, params).fetchall()
        ]
        totals = {
            key: round(sum(p[key] for p in periods), 2)
            for key in ("revenue", "collected", "outstanding")
        }
        totals["transactions"] = sum(p["transactions"] for p in periods)
        return {
            "startDate": q.start_date,
            "endDate": q.end_date,
            "groupBy": q.group_by,
            "periods": periods,
            "totals": totals,
        }

    # ----------------------------- Inventory -----------------------------

    def inventory_report(self, q: InventoryReportQuery) -> Dict[str, Any]:
        if q.low_stock_threshold < 0:
            raise ValidationError("lowStockThreshold cannot be negative")
        return {
            "lowStockItems": InventoryRepo(self.conn).low_stock(q.low_stock_threshold),
            "threshold": q.low_stock_threshold,
        }

    # ----------------------------- Receivables -----------------------------

    def customer_debt_report(self) -> List[Dict[str, Any]]:
        rows = self.conn.execute(
            """
            SELECT customer_phone,
                   MAX(customer_name) AS customer_name,
                   SUM(CAST(total_amount AS REAL) - CAST(amount_paid AS REAL)) AS outstanding,
                   COUNT(*) AS bill_count,
                   MIN(created_at) AS oldest
            FROM sales
            WHERE payment_status IN ('unpaid','partial')
            GROUP BY customer_phone
            ORDER BY outstanding DESC
            """
        ).fetchall()
        return [
            {
                "customerName": r["customer_name"],
                "customerPhone": r["customer_phone"],
                "totalOutstanding": round(float(r["outstanding"] or 0), 2),
                "billCount": int(r["bill_count"]),
                "oldestBill": fmt_ddmmyyyy(r["oldest"]),
            }
            for r in rows
        ]
