"""
Suite: Stock adjuster & movement ledger

- stock_in adds and records a 'stock_in' movement
- set_stock records the difference as an 'adjustment'
- bulk stock-in reports per-item results without stopping at failures
- low-stock lists colors at or below the threshold
"""
import pytest

from paint_pos.database.repositories.errors import ConflictError, NotFoundError, ValidationError
from paint_pos.database.repositories.inventory_repo import InventoryRepo

from .helpers import stock_of


def test_opening_stock_is_in_the_ledger(conn, catalog):
    moves = InventoryRepo(conn).list_movements(catalog["red"])
    assert [(m["movementType"], m["delta"], m["notes"]) for m in moves] == [("stock_in", 20, "Opening stock")]


def test_stock_in_adds_and_logs(conn, catalog):
    inv = InventoryRepo(conn)
    color = inv.stock_in(catalog["white"], 10, notes="Delivery #12")
    assert color.stock_quantity == 15
    last = inv.list_movements(catalog["white"])[0]
    assert (last["movementType"], last["delta"], last["notes"]) == ("stock_in", 10, "Delivery #12")


@pytest.mark.parametrize("qty", [0, -3, "x", 2.5])
def test_stock_in_requires_positive_whole_quantity(conn, catalog, qty):
    with pytest.raises(ValidationError):
        InventoryRepo(conn).stock_in(catalog["red"], qty)


def test_stock_in_unknown_color(conn, catalog):
    with pytest.raises(NotFoundError):
        InventoryRepo(conn).stock_in("nope", 1)


def test_set_stock_records_difference(conn, catalog):
    inv = InventoryRepo(conn)
    inv.set_stock(catalog["red"], 12)
    assert stock_of(conn, catalog["red"]) == 12
    last = inv.list_movements(catalog["red"])[0]
    assert (last["movementType"], last["delta"]) == ("adjustment", -8)
    assert inv.ledger_balance(catalog["red"]) == 12


def test_set_stock_to_same_value_writes_nothing(conn, catalog):
    inv = InventoryRepo(conn)
    inv.set_stock(catalog["red"], 20)
    assert len(inv.list_movements(catalog["red"])) == 1


def test_set_stock_rejects_negative(conn, catalog):
    with pytest.raises(ValidationError):
        InventoryRepo(conn).set_stock(catalog["red"], -1)


def test_decrement_below_zero_conflicts(conn, catalog):
    with pytest.raises(ConflictError):
        InventoryRepo(conn).adjust_stock(catalog["white"], -6, movement_type="sale")
    assert stock_of(conn, catalog["white"]) == 5


def test_unknown_movement_type_is_a_programming_error(conn, catalog):
    with pytest.raises(ValueError):
        InventoryRepo(conn).adjust_stock(catalog["red"], 1, movement_type="gift")


def test_bulk_stock_in_reports_each_item(conn, catalog):
    results = InventoryRepo(conn).bulk_stock_in([
        {"colorId": catalog["red"], "quantity": 5},
        {"colorId": "nope", "quantity": 5},
        {"colorId": catalog["blue"], "quantity": 0},
    ])
    assert [r["success"] for r in results] == [True, False, False]
    assert results[0]["result"]["stockQuantity"] == 25
    assert results[1]["error"] == "Color not found"
    assert stock_of(conn, catalog["blue"]) == 15


def test_low_stock_threshold_is_inclusive(conn, catalog):
    inv = InventoryRepo(conn)
    assert [c["id"] for c in inv.low_stock(5)] == [catalog["white"]]
    ids = [c["id"] for c in inv.low_stock(15)]
    assert ids == [catalog["white"], catalog["blue"]]
    assert inv.low_stock(5)[0]["variant"]["product"]["company"] == "Asian Paints"
