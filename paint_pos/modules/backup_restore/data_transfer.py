"""
modules/backup_restore/data_transfer.py

JSON export of catalog, stock and sales tables, and catalog import.

Export kinds:
    all        products, variants, colors, sales, saleItems, salePayments
    products   products, variants, colors
    inventory  colors (with current stock)
    sales      sales, saleItems, salePayments

Import upserts products, variants and colors by id in one unit of work. Stock
figures in an import become 'adjustment' movements so the ledger stays in step.
"""
from __future__ import annotations

import sqlite3
from typing import Any, Dict, List

from ...constants import SCHEMA_VERSION
from ...database import immediate_tx
from ...database.repositories.errors import ValidationError
from ...database.repositories.inventory_repo import InventoryRepo
from ...database.repositories.products_repo import Color, Product, ProductsRepo, Variant
from ...database.repositories.sales_repo import Sale, SaleItem, SalesRepo
from ...utils.helpers import now_iso
from ...utils.loggers import get_logger

_log = get_logger("paint_pos.data_transfer")

EXPORT_KINDS = ("all", "products", "inventory", "sales")
IMPORT_KINDS = ("all", "products", "inventory")


def _rows(conn: sqlite3.Connection, sql: str) -> List[sqlite3.Row]:
    return conn.execute(sql).fetchall()


def _products(conn) -> List[Dict[str, Any]]:
    return [Product(**r).to_dict() for r in _rows(
        conn, "SELECT id, company, product_name, created_at FROM products ORDER BY rowid")]


def _variants(conn) -> List[Dict[str, Any]]:
    return [Variant(**r).to_dict() for r in _rows(
        conn, "SELECT id, product_id, packing_size, rate, created_at FROM variants ORDER BY rowid")]


def _colors(conn) -> List[Dict[str, Any]]:
    return [Color(**r).to_dict() for r in _rows(
        conn, "SELECT id, variant_id, color_name, color_code, stock_quantity, created_at "
              "FROM colors ORDER BY rowid")]


def _sales(conn) -> Dict[str, List[Dict[str, Any]]]:
    sales = [Sale(**r).to_dict() for r in _rows(
        conn, "SELECT id, customer_name, customer_phone, total_amount, amount_paid, payment_status, "
              "created_at FROM sales ORDER BY created_at, rowid")]
    items = [SaleItem(**r).to_dict() for r in _rows(
        conn, "SELECT id, sale_id, color_id, quantity, rate, subtotal FROM sale_items ORDER BY rowid")]
    repo = SalesRepo(conn)
    payments: List[Dict[str, Any]] = []
    for s in sales:
        payments.extend(repo.list_payments(s["id"]))
    return {"sales": sales, "saleItems": items, "salePayments": payments}


def export_data(conn: sqlite3.Connection, kind: str = "all") -> Dict[str, Any]:
    kind = (kind or "all").strip().lower()
    if kind not in EXPORT_KINDS:
        raise ValidationError(f"type must be one of: {', '.join(EXPORT_KINDS)}")
    conn.row_factory = sqlite3.Row
    out: Dict[str, Any] = {"version": SCHEMA_VERSION, "type": kind, "exportedAt": now_iso()}
    if kind in ("all", "products"):
        out["products"] = _products(conn)
        out["variants"] = _variants(conn)
    if kind in ("all", "products", "inventory"):
        out["colors"] = _colors(conn)
    if kind in ("all", "sales"):
        out.update(_sales(conn))
    return out


def _section(data: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    rows = data.get(key) or []
    if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
        raise ValidationError(f"'{key}' must be a list of objects")
    for r in rows:
        if not r.get("id"):
            raise ValidationError(f"Every row in '{key}' needs an id")
    return rows


def import_data(conn: sqlite3.Connection, data: Any, kind: str = "all") -> Dict[str, int]:
    """
    Upsert catalog rows from an export document. Returns per-table counts.
    Any bad row rolls back the whole import.
    """
    kind = (kind or "all").strip().lower()
    if kind not in IMPORT_KINDS:
        raise ValidationError(f"type must be one of: {', '.join(IMPORT_KINDS)}")
    if not isinstance(data, dict):
        raise ValidationError("data must be an object")

    products = ProductsRepo(conn)
    inventory = InventoryRepo(conn)
    counts = {"products": 0, "variants": 0, "colors": 0}
    try:
        with immediate_tx(conn):
            if kind in ("all", "products"):
                for row in _section(data, "products"):
                    products.upsert_product(row)
                    counts["products"] += 1
                for row in _section(data, "variants"):
                    if products.get(row.get("productId")) is None:
                        raise ValidationError(f"Variant {row['id']} refers to an unknown product")
                    products.upsert_variant(row)
                    counts["variants"] += 1
            for row in _section(data, "colors"):
                if products.get_variant(row.get("variantId")) is None:
                    raise ValidationError(f"Color {row['id']} refers to an unknown variant")
                current = products.get_color(row["id"])
                target = row.get("stockQuantity", 0)
                products.upsert_color({**row, "stockQuantity": current.stock_quantity if current else 0})
                inventory.set_stock(row["id"], target)
                counts["colors"] += 1
    except (KeyError, TypeError, ValueError) as exc:
        raise ValidationError(f"Malformed import row: {exc}") from exc
    _log.info("Imported %s data: %s", kind, counts)
    return counts
