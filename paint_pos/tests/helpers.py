import sqlite3


def stock_of(conn: sqlite3.Connection, color_id: str) -> int:
    return int(conn.execute("SELECT stock_quantity FROM colors WHERE id=?", (color_id,)).fetchone()[0])


def line(color_id: str, quantity: int, rate=None) -> dict:
    item = {"colorId": color_id, "quantity": quantity}
    if rate is not None:
        item["rate"] = rate
    return item


def age_sale(conn: sqlite3.Connection, sale_id: str, created_at: str) -> None:
    """Backdate a sale for ordering/filter tests."""
    conn.execute("UPDATE sales SET created_at=? WHERE id=?", (created_at, sale_id))
    conn.commit()
