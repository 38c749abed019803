"""
Repository for stock: the single place that changes colors.stock_quantity.

Every change is one `UPDATE ... SET stock_quantity = stock_quantity + ?`
(no read-modify-write in Python) and writes one stock_movements row, so the
ledger sum per color always reconciles with the on-hand figure.

Conventions:
- List-returning methods yield `list[dict]` with camelCase keys for the API.
- Timestamps are ISO strings from utils.helpers.now_iso().
"""

from __future__ import annotations

import sqlite3
from typing import Any, Dict, List, Optional

from paint_pos.constants import DEFAULT_LOW_STOCK_THRESHOLD
from paint_pos.database import immediate_tx
from paint_pos.utils.helpers import new_id, now_iso
from paint_pos.utils.loggers import get_logger

from .errors import ConflictError, NotFoundError, ValidationError
from .products_repo import Color, color_detail_from_row, _COLOR_DETAIL_SQL

_log = get_logger("paint_pos.inventory")

MOVEMENT_TYPES = ("sale", "sale_return", "item_removed", "sale_deleted", "stock_in", "adjustment")


def _require_qty(qty: Any, *, allow_zero: bool = False) -> int:
    if isinstance(qty, bool):
        raise ValidationError("Quantity must be a whole number")
    try:
        q = int(qty)
    except (TypeError, ValueError) as exc:
        raise ValidationError("Quantity must be a whole number") from exc
    if isinstance(qty, float) and not qty.is_integer():
        raise ValidationError("Quantity must be a whole number")
    if q < 0 or (q == 0 and not allow_zero):
        raise ValidationError("Quantity must be positive" if not allow_zero else "Quantity cannot be negative")
    return q


class InventoryRepo:
    def __init__(self, conn: sqlite3.Connection, *, allow_oversell: bool = False):
        self.conn = conn
        self.conn.row_factory = sqlite3.Row
        self.allow_oversell = allow_oversell

    # ------------------------------------------------------------------
    # Stock adjuster
    # ------------------------------------------------------------------
    def adjust_stock(
        self,
        color_id: str,
        delta: int,
        *,
        movement_type: str,
        sale_id: Optional[str] = None,
        sale_item_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Color:
        """
        Atomically add `delta` (negative to decrement) to a color's stock.

        Raises NotFoundError for an unknown color. A decrement that would leave
        stock below zero raises ConflictError unless the repo was built with
        allow_oversell=True.
        """
        if movement_type not in MOVEMENT_TYPES:
            raise ValueError(f"Unknown movement type: {movement_type}")
        delta = int(delta)
        with immediate_tx(self.conn):
            if delta < 0 and not self.allow_oversell:
                cur = self.conn.execute(
                    "UPDATE colors SET stock_quantity = stock_quantity + ? "
                    "WHERE id = ? AND stock_quantity + ? >= 0",
                    (delta, color_id, delta),
                )
                if cur.rowcount == 0:
                    row = self.conn.execute(
                        "SELECT color_name, stock_quantity FROM colors WHERE id=?", (color_id,)
                    ).fetchone()
                    if row is None:
                        raise NotFoundError("Color not found")
                    raise ConflictError(
                        f"Insufficient stock for {row['color_name']}: "
                        f"{row['stock_quantity']} available, {-delta} requested",
                        details={"colorId": color_id, "available": int(row["stock_quantity"]),
                                 "requested": -delta},
                    )
            else:
                cur = self.conn.execute(
                    "UPDATE colors SET stock_quantity = stock_quantity + ? WHERE id = ?",
                    (delta, color_id),
                )
                if cur.rowcount == 0:
                    raise NotFoundError("Color not found")
            self.conn.execute(
                "INSERT INTO stock_movements(id, color_id, delta, movement_type, sale_id, "
                "sale_item_id, notes, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (new_id(), color_id, delta, movement_type, sale_id, sale_item_id, notes, now_iso()),
            )
            color = self._color(color_id)
        _log.debug("stock %s %+d (%s) -> %s", color_id, delta, movement_type, color.stock_quantity)
        return color

    def _color(self, color_id: str) -> Color:
        r = self.conn.execute(
            "SELECT id, variant_id, color_name, color_code, stock_quantity, created_at "
            "FROM colors WHERE id=?",
            (color_id,),
        ).fetchone()
        if r is None:
            raise NotFoundError("Color not found")
        return Color(**r)

    # ------------------------------------------------------------------
    # Receiving / corrections
    # ------------------------------------------------------------------
    def stock_in(self, color_id: str, quantity: Any, *, notes: Optional[str] = None) -> Color:
        qty = _require_qty(quantity)
        return self.adjust_stock(color_id, qty, movement_type="stock_in", notes=notes)

    def set_stock(self, color_id: str, stock_quantity: Any) -> Color:
        """
        Manual correction to an absolute figure. Recorded as an 'adjustment'
        movement of the difference.
        """
        target = _require_qty(stock_quantity, allow_zero=True)
        with immediate_tx(self.conn):
            row = self.conn.execute(
                "SELECT stock_quantity FROM colors WHERE id=?", (color_id,)
            ).fetchone()
            if row is None:
                raise NotFoundError("Color not found")
            diff = target - int(row["stock_quantity"])
            if diff == 0:
                return self._color(color_id)
            return self.adjust_stock(color_id, diff, movement_type="adjustment",
                                     notes="Manual stock correction")

    def bulk_stock_in(self, items: List[Dict[str, Any]]) -> list[dict]:
        """
        Receive stock for many colors. Each item commits on its own; failures
        are reported per item as {success: False, colorId, error}.
        """
        results = []
        for item in items:
            cid = item.get("colorId")
            try:
                color = self.stock_in(cid, item.get("quantity"))
                results.append({"success": True, "colorId": cid, "result": color.to_dict()})
            except (ValidationError, NotFoundError) as exc:
                results.append({"success": False, "colorId": cid, "error": exc.message})
        return results

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def list_movements(self, color_id: Optional[str] = None, limit: int = 100) -> List[Dict]:
        lim = self._normalize_limit(limit)
        sql = """
            SELECT id, color_id, delta, movement_type, sale_id, sale_item_id, notes, created_at
            FROM stock_movements
        """
        params: list = []
        if color_id:
            sql += " WHERE color_id = ?"
            params.append(color_id)
        sql += " ORDER BY created_at DESC, rowid DESC LIMIT ?"
        params.append(lim)
        return [
            {
                "id": r["id"],
                "colorId": r["color_id"],
                "delta": int(r["delta"]),
                "movementType": r["movement_type"],
                "saleId": r["sale_id"],
                "saleItemId": r["sale_item_id"],
                "notes": r["notes"],
                "createdAt": r["created_at"],
            }
            for r in self.conn.execute(sql, params).fetchall()
        ]

    def ledger_balance(self, color_id: str) -> int:
        """Σ delta for a color; equals stock_quantity when every change went through adjust_stock."""
        r = self.conn.execute(
            "SELECT COALESCE(SUM(delta), 0) AS n FROM stock_movements WHERE color_id=?", (color_id,)
        ).fetchone()
        return int(r["n"])

    def low_stock(self, threshold: int = DEFAULT_LOW_STOCK_THRESHOLD) -> list[dict]:
        """Colors at or below `threshold`, lowest first, with variant/product nested."""
        rows = self.conn.execute(
            _COLOR_DETAIL_SQL + " WHERE c.stock_quantity <= ? "
            "ORDER BY c.stock_quantity ASC, p.company, p.product_name",
            (int(threshold),),
        ).fetchall()
        return [color_detail_from_row(r) for r in rows]

    # ------------------------------------------------------------------
    # Utilities
    # ------------------------------------------------------------------
    @staticmethod
    def _normalize_limit(limit: int, default: int = 100, max_limit: int = 10000) -> int:
        try:
            lim = int(limit)
        except (TypeError, ValueError):
            return default
        if lim <= 0:
            return default
        return min(lim, max_limit)
