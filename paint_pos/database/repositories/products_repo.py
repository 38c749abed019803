# paint_pos/database/repositories/products_repo.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import sqlite3

from paint_pos.database import immediate_tx
from paint_pos.modules.payments.payment_utilities.calculations import money_str, to_money
from paint_pos.utils.helpers import new_id, now_iso
from paint_pos.utils.validators import non_empty

from .errors import ConflictError, NotFoundError, ValidationError
from .queries import ColorSearchQuery, ProductSearchQuery


@dataclass
class Product:
    id: str
    company: str
    product_name: str
    created_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "company": self.company,
            "productName": self.product_name,
            "createdAt": self.created_at,
        }


@dataclass
class Variant:
    id: str
    product_id: str
    packing_size: str
    rate: str
    created_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "productId": self.product_id,
            "packingSize": self.packing_size,
            "rate": self.rate,
            "createdAt": self.created_at,
        }


@dataclass
class Color:
    id: str
    variant_id: str
    color_name: str
    color_code: str
    stock_quantity: int
    created_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "variantId": self.variant_id,
            "colorName": self.color_name,
            "colorCode": self.color_code,
            "stockQuantity": int(self.stock_quantity),
            "createdAt": self.created_at,
        }


_COLOR_DETAIL_SQL = """
    SELECT c.id, c.variant_id, c.color_name, c.color_code, c.stock_quantity, c.created_at,
           v.product_id, v.packing_size, v.rate, v.created_at AS variant_created_at,
           p.company, p.product_name, p.created_at AS product_created_at
    FROM colors c
    JOIN variants v ON v.id = c.variant_id
    JOIN products p ON p.id = v.product_id
"""


def color_detail_from_row(r: sqlite3.Row) -> Dict[str, Any]:
    """Color → variant → product, nested the way the sale detail view expects."""
    product = Product(r["product_id"], r["company"], r["product_name"], r["product_created_at"])
    variant = Variant(r["variant_id"], r["product_id"], r["packing_size"], r["rate"], r["variant_created_at"])
    color = Color(r["id"], r["variant_id"], r["color_name"], r["color_code"], r["stock_quantity"], r["created_at"])
    out = color.to_dict()
    out["variant"] = {**variant.to_dict(), "product": product.to_dict()}
    return out


def _require_text(value: Any, label: str) -> str:
    if not non_empty(value):
        raise ValidationError(f"{label} is required")
    return str(value).strip()


def _require_rate(rate: Any) -> str:
    try:
        r = to_money(rate)
    except ValueError as exc:
        raise ValidationError("Rate must be a number") from exc
    if r <= 0:
        raise ValidationError("Rate must be a positive number")
    return str(r)


def _require_stock(qty: Any) -> int:
    if isinstance(qty, bool):
        raise ValidationError("Stock quantity must be a whole number")
    try:
        q = int(qty)
    except (TypeError, ValueError) as exc:
        raise ValidationError("Stock quantity must be a whole number") from exc
    if q != qty and str(q) != str(qty).strip():
        raise ValidationError("Stock quantity must be a whole number")
    if q < 0:
        raise ValidationError("Stock quantity cannot be negative")
    return q


class ProductsRepo:
    """Catalog repository: products → variants → colors."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self.conn.row_factory = sqlite3.Row

    # ---------------------------- Products ----------------------------

    def list_products(self) -> list[Product]:
        rows = self.conn.execute(
            "SELECT id, company, product_name, created_at FROM products "
            "ORDER BY created_at DESC, rowid DESC"
        ).fetchall()
        return [Product(**r) for r in rows]

    def get(self, product_id: str) -> Product | None:
        r = self.conn.execute(
            "SELECT id, company, product_name, created_at FROM products WHERE id=?",
            (product_id,),
        ).fetchone()
        return Product(**r) if r else None

    def require(self, product_id: str) -> Product:
        p = self.get(product_id)
        if p is None:
            raise NotFoundError("Product not found")
        return p

    def create(self, company: str, product_name: str) -> Product:
        p = Product(new_id(), _require_text(company, "Company"),
                    _require_text(product_name, "Product name"), now_iso())
        with immediate_tx(self.conn):
            self.conn.execute(
                "INSERT INTO products(id, company, product_name, created_at) VALUES (?, ?, ?, ?)",
                (p.id, p.company, p.product_name, p.created_at),
            )
        return p

    def update(self, product_id: str, *, company: str | None = None,
               product_name: str | None = None) -> Product:
        with immediate_tx(self.conn):
            current = self.require(product_id)
            company = _require_text(company, "Company") if company is not None else current.company
            name = (_require_text(product_name, "Product name")
                    if product_name is not None else current.product_name)
            self.conn.execute(
                "UPDATE products SET company=?, product_name=? WHERE id=?",
                (company, name, product_id),
            )
        return self.require(product_id)

    def delete(self, product_id: str) -> None:
        with immediate_tx(self.conn):
            self.require(product_id)
            used = self.conn.execute(
                "SELECT 1 FROM variants WHERE product_id=? LIMIT 1", (product_id,)
            ).fetchone()
            if used:
                raise ConflictError("Product has variants; delete them first")
            self.conn.execute("DELETE FROM products WHERE id=?", (product_id,))

    def search_products(self, q: ProductSearchQuery) -> list[Product]:
        where: List[str] = []
        params: List[Any] = []
        if q.query:
            where.append("(product_name LIKE ? OR company LIKE ?)")
            params += [f"%{q.query}%", f"%{q.query}%"]
        if q.company:
            where.append("company LIKE ?")
            params.append(f"%{q.company}%")
        sql = "SELECT id, company, product_name, created_at FROM products"
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY company, product_name"
        return [Product(**r) for r in self.conn.execute(sql, params).fetchall()]

    # ---------------------------- Variants ----------------------------

    def list_variants(self, product_id: str | None = None) -> list[dict]:
        """Variants with their product nested, newest first."""
        sql = """
            SELECT v.id, v.product_id, v.packing_size, v.rate, v.created_at,
                   p.company, p.product_name, p.created_at AS product_created_at
            FROM variants v
            JOIN products p ON p.id = v.product_id
        """
        params: tuple = ()
        if product_id:
            sql += " WHERE v.product_id = ?"
            params = (product_id,)
        sql += " ORDER BY v.created_at DESC, v.rowid DESC"
        out = []
        for r in self.conn.execute(sql, params).fetchall():
            d = Variant(r["id"], r["product_id"], r["packing_size"], r["rate"], r["created_at"]).to_dict()
            d["product"] = Product(r["product_id"], r["company"], r["product_name"],
                                   r["product_created_at"]).to_dict()
            out.append(d)
        return out

    def get_variant(self, variant_id: str) -> Variant | None:
        r = self.conn.execute(
            "SELECT id, product_id, packing_size, rate, created_at FROM variants WHERE id=?",
            (variant_id,),
        ).fetchone()
        return Variant(**r) if r else None

    def require_variant(self, variant_id: str) -> Variant:
        v = self.get_variant(variant_id)
        if v is None:
            raise NotFoundError("Variant not found")
        return v

    def create_variant(self, product_id: str, packing_size: str, rate: Any) -> Variant:
        v = Variant(new_id(), product_id, _require_text(packing_size, "Packing size"),
                    _require_rate(rate), now_iso())
        with immediate_tx(self.conn):
            if self.get(product_id) is None:
                raise ValidationError("Product does not exist")
            self.conn.execute(
                "INSERT INTO variants(id, product_id, packing_size, rate, created_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (v.id, v.product_id, v.packing_size, v.rate, v.created_at),
            )
        return v

    def update_variant(self, variant_id: str, *, product_id: str | None = None,
                       packing_size: str | None = None, rate: Any = None) -> Variant:
        with immediate_tx(self.conn):
            cur = self.require_variant(variant_id)
            if product_id is not None and self.get(product_id) is None:
                raise ValidationError("Product does not exist")
            self.conn.execute(
                "UPDATE variants SET product_id=?, packing_size=?, rate=? WHERE id=?",
                (
                    product_id or cur.product_id,
                    _require_text(packing_size, "Packing size") if packing_size is not None else cur.packing_size,
                    _require_rate(rate) if rate is not None else cur.rate,
                    variant_id,
                ),
            )
        return self.require_variant(variant_id)

    def update_variant_rate(self, variant_id: str, rate: Any) -> Variant:
        """Change the current rate; existing sale lines keep their snapshot."""
        new_rate = _require_rate(rate)
        with immediate_tx(self.conn):
            cur = self.conn.execute("UPDATE variants SET rate=? WHERE id=?", (new_rate, variant_id))
            if cur.rowcount == 0:
                raise NotFoundError("Variant not found")
        return self.require_variant(variant_id)

    def bulk_update_rates(self, updates: List[Dict[str, Any]]) -> list[dict]:
        """
        Apply each {variantId, rate} independently. Returns one result per input:
        {success, variantId, result|error}.
        """
        results = []
        for u in updates:
            vid = u.get("variantId")
            try:
                v = self.update_variant_rate(vid, u.get("rate"))
                results.append({"success": True, "variantId": vid, "result": v.to_dict()})
            except (ValidationError, NotFoundError) as exc:
                results.append({"success": False, "variantId": vid, "error": exc.message})
        return results

    def delete_variant(self, variant_id: str) -> None:
        with immediate_tx(self.conn):
            self.require_variant(variant_id)
            used = self.conn.execute(
                "SELECT 1 FROM colors WHERE variant_id=? LIMIT 1", (variant_id,)
            ).fetchone()
            if used:
                raise ConflictError("Variant has colors; delete them first")
            self.conn.execute("DELETE FROM variants WHERE id=?", (variant_id,))

    # ---------------------------- Colors ----------------------------

    def list_colors(self, variant_id: str | None = None) -> list[dict]:
        sql = _COLOR_DETAIL_SQL
        params: tuple = ()
        if variant_id:
            sql += " WHERE c.variant_id = ?"
            params = (variant_id,)
        sql += " ORDER BY c.created_at DESC, c.rowid DESC"
        return [color_detail_from_row(r) for r in self.conn.execute(sql, params).fetchall()]

    def get_color(self, color_id: str) -> Color | None:
        r = self.conn.execute(
            "SELECT id, variant_id, color_name, color_code, stock_quantity, created_at "
            "FROM colors WHERE id=?",
            (color_id,),
        ).fetchone()
        return Color(**r) if r else None

    def require_color(self, color_id: str) -> Color:
        c = self.get_color(color_id)
        if c is None:
            raise NotFoundError("Color not found")
        return c

    def get_color_detail(self, color_id: str) -> dict | None:
        r = self.conn.execute(_COLOR_DETAIL_SQL + " WHERE c.id = ?", (color_id,)).fetchone()
        return color_detail_from_row(r) if r else None

    def create_color(self, variant_id: str, color_name: str, color_code: str,
                     stock_quantity: Any = 0) -> Color:
        c = Color(new_id(), variant_id, _require_text(color_name, "Color name"),
                  _require_text(color_code, "Color code"), _require_stock(stock_quantity), now_iso())
        with immediate_tx(self.conn):
            if self.get_variant(variant_id) is None:
                raise ValidationError("Variant does not exist")
            self.conn.execute(
                "INSERT INTO colors(id, variant_id, color_name, color_code, stock_quantity, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (c.id, c.variant_id, c.color_name, c.color_code, c.stock_quantity, c.created_at),
            )
            if c.stock_quantity:
                self.conn.execute(
                    "INSERT INTO stock_movements(id, color_id, delta, movement_type, notes, created_at) "
                    "VALUES (?, ?, ?, 'stock_in', 'Opening stock', ?)",
                    (new_id(), c.id, c.stock_quantity, c.created_at),
                )
        return c

    def update_color(self, color_id: str, *, variant_id: str | None = None,
                     color_name: str | None = None, color_code: str | None = None) -> Color:
        """Rename/recode a color. Stock changes go through InventoryRepo."""
        with immediate_tx(self.conn):
            cur = self.require_color(color_id)
            if variant_id is not None and self.get_variant(variant_id) is None:
                raise ValidationError("Variant does not exist")
            self.conn.execute(
                "UPDATE colors SET variant_id=?, color_name=?, color_code=? WHERE id=?",
                (
                    variant_id or cur.variant_id,
                    _require_text(color_name, "Color name") if color_name is not None else cur.color_name,
                    _require_text(color_code, "Color code") if color_code is not None else cur.color_code,
                    color_id,
                ),
            )
        return self.require_color(color_id)

    def delete_color(self, color_id: str) -> None:
        with immediate_tx(self.conn):
            self.require_color(color_id)
            used = self.conn.execute(
                "SELECT 1 FROM sale_items WHERE color_id=? LIMIT 1", (color_id,)
            ).fetchone()
            if used:
                raise ConflictError("Color is referenced by sales and cannot be deleted")
            self.conn.execute("DELETE FROM colors WHERE id=?", (color_id,))

    def search_colors(self, q: ColorSearchQuery) -> list[dict]:
        where: List[str] = []
        params: List[Any] = []
        if q.query:
            where.append("(c.color_name LIKE ? OR c.color_code LIKE ?)")
            params += [f"%{q.query}%", f"%{q.query}%"]
        if q.company:
            where.append("p.company LIKE ?")
            params.append(f"%{q.company}%")
        if q.product:
            where.append("p.product_name LIKE ?")
            params.append(f"%{q.product}%")
        if q.variant:
            where.append("v.packing_size LIKE ?")
            params.append(f"%{q.variant}%")
        sql = _COLOR_DETAIL_SQL
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY p.company, p.product_name, v.packing_size, c.color_name"
        return [color_detail_from_row(r) for r in self.conn.execute(sql, params).fetchall()]

    # ---------------------------- Import helpers ----------------------------

    def upsert_product(self, row: Dict[str, Any]) -> None:
        self.conn.execute(
            "INSERT INTO products(id, company, product_name, created_at) VALUES (?, ?, ?, ?) "
            "ON CONFLICT(id) DO UPDATE SET company=excluded.company, product_name=excluded.product_name",
            (row["id"], _require_text(row.get("company"), "Company"),
             _require_text(row.get("productName"), "Product name"),
             row.get("createdAt") or now_iso()),
        )

    def upsert_variant(self, row: Dict[str, Any]) -> None:
        self.conn.execute(
            "INSERT INTO variants(id, product_id, packing_size, rate, created_at) VALUES (?, ?, ?, ?, ?) "
            "ON CONFLICT(id) DO UPDATE SET product_id=excluded.product_id, "
            "packing_size=excluded.packing_size, rate=excluded.rate",
            (row["id"], row["productId"], _require_text(row.get("packingSize"), "Packing size"),
             money_str(row.get("rate")), row.get("createdAt") or now_iso()),
        )

    def upsert_color(self, row: Dict[str, Any]) -> None:
        self.conn.execute(
            "INSERT INTO colors(id, variant_id, color_name, color_code, stock_quantity, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?) "
            "ON CONFLICT(id) DO UPDATE SET variant_id=excluded.variant_id, color_name=excluded.color_name, "
            "color_code=excluded.color_code, stock_quantity=excluded.stock_quantity",
            (row["id"], row["variantId"], _require_text(row.get("colorName"), "Color name"),
             _require_text(row.get("colorCode"), "Color code"),
             _require_stock(row.get("stockQuantity", 0)), row.get("createdAt") or now_iso()),
        )
