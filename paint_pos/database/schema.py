from pathlib import Path
import sqlite3

SQL = r"""
PRAGMA foreign_keys = ON;

/* ======================== CATALOG ======================== */

/* -------- products: company + product line -------- */
CREATE TABLE IF NOT EXISTS products (
    id            TEXT PRIMARY KEY,
    company       TEXT NOT NULL,
    product_name  TEXT NOT NULL,
    created_at    TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_products_company ON products(company);

/* -------- variants: packing size + current rate -------- */
CREATE TABLE IF NOT EXISTS variants (
    id            TEXT PRIMARY KEY,
    product_id    TEXT NOT NULL,
    packing_size  TEXT NOT NULL,
    rate          TEXT NOT NULL,
    created_at    TEXT NOT NULL,
    FOREIGN KEY (product_id) REFERENCES products(id) ON DELETE RESTRICT
);
CREATE INDEX IF NOT EXISTS idx_variants_product ON variants(product_id);

/* -------- colors: the stock-unit -------- */
CREATE TABLE IF NOT EXISTS colors (
    id              TEXT PRIMARY KEY,
    variant_id      TEXT NOT NULL,
    color_name      TEXT NOT NULL,
    color_code      TEXT NOT NULL,
    stock_quantity  INTEGER NOT NULL DEFAULT 0,
    created_at      TEXT NOT NULL,
    FOREIGN KEY (variant_id) REFERENCES variants(id) ON DELETE RESTRICT
);
CREATE INDEX IF NOT EXISTS idx_colors_variant ON colors(variant_id);

/* ======================== SALES ======================== */

CREATE TABLE IF NOT EXISTS sales (
    id              TEXT PRIMARY KEY,
    customer_name   TEXT NOT NULL,
    customer_phone  TEXT NOT NULL,
    total_amount    TEXT NOT NULL DEFAULT '0.00',
    amount_paid     TEXT NOT NULL DEFAULT '0.00',
    payment_status  TEXT NOT NULL DEFAULT 'unpaid'
                    CHECK (payment_status IN ('unpaid','partial','paid')),
    created_at      TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_sales_created_at ON sales(created_at);
/* open-bill lookup by phone (unpaid/partial only) */
CREATE INDEX IF NOT EXISTS idx_sales_open_by_phone
ON sales(customer_phone, created_at)
WHERE payment_status IN ('unpaid','partial');

CREATE TABLE IF NOT EXISTS sale_items (
    id        TEXT PRIMARY KEY,
    sale_id   TEXT NOT NULL,
    color_id  TEXT NOT NULL,
    quantity  INTEGER NOT NULL CHECK (quantity > 0),
    rate      TEXT NOT NULL,
    subtotal  TEXT NOT NULL,
    FOREIGN KEY (sale_id)  REFERENCES sales(id)  ON DELETE CASCADE,
    FOREIGN KEY (color_id) REFERENCES colors(id) ON DELETE RESTRICT
);
CREATE INDEX IF NOT EXISTS idx_sale_items_sale  ON sale_items(sale_id);
CREATE INDEX IF NOT EXISTS idx_sale_items_color ON sale_items(color_id);

/* one row per receipt applied to a sale */
CREATE TABLE IF NOT EXISTS sale_payments (
    id           TEXT PRIMARY KEY,
    sale_id      TEXT NOT NULL,
    amount       TEXT NOT NULL,
    receipt_ref  TEXT,
    notes        TEXT,
    created_at   TEXT NOT NULL,
    FOREIGN KEY (sale_id) REFERENCES sales(id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_sale_payments_sale    ON sale_payments(sale_id);
CREATE INDEX IF NOT EXISTS idx_sale_payments_receipt ON sale_payments(receipt_ref);

/* returned quantities; sale_item_id may point at a line that no longer exists */
CREATE TABLE IF NOT EXISTS sale_returns (
    id            TEXT PRIMARY KEY,
    sale_id       TEXT NOT NULL,
    sale_item_id  TEXT NOT NULL,
    color_id      TEXT NOT NULL,
    quantity      INTEGER NOT NULL CHECK (quantity > 0),
    rate          TEXT NOT NULL,
    amount        TEXT NOT NULL,
    reason        TEXT NOT NULL,
    created_at    TEXT NOT NULL,
    FOREIGN KEY (sale_id) REFERENCES sales(id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_sale_returns_sale ON sale_returns(sale_id);

/* ======================== INVENTORY LEDGER ======================== */

CREATE TABLE IF NOT EXISTS stock_movements (
    id             TEXT PRIMARY KEY,
    color_id       TEXT NOT NULL,
    delta          INTEGER NOT NULL,
    movement_type  TEXT NOT NULL CHECK (movement_type IN
                   ('sale','sale_return','item_removed','sale_deleted','stock_in','adjustment')),
    sale_id        TEXT,
    sale_item_id   TEXT,
    notes          TEXT,
    created_at     TEXT NOT NULL,
    FOREIGN KEY (color_id) REFERENCES colors(id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_stock_movements_color ON stock_movements(color_id, created_at);
"""

REQUIRED_TABLES = (
    "products",
    "variants",
    "colors",
    "sales",
    "sale_items",
)


def init_schema(db_path: Path | str) -> None:
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(db_path) as conn:
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.executescript(SQL)
        conn.commit()
    conn.close()


def missing_tables(conn: sqlite3.Connection) -> list[str]:
    """Return the names of REQUIRED_TABLES not present in `conn`."""
    rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
    present = {r[0] for r in rows}
    return [t for t in REQUIRED_TABLES if t not in present]
