"""
modules/sales/lifecycle.py

Sale lifecycle: create (or fold into the customer's open bill), add/remove/return
lines, take payments, delete. Every public operation is one unit of work:
stock movement, row mutation and the total/status recompute commit together or
not at all.
"""
from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ...constants import DEFAULT_RETURN_REASON, OPEN_STATUSES
from ...database import immediate_tx
from ...database.repositories.errors import ConflictError, ValidationError
from ...database.repositories.inventory_repo import InventoryRepo
from ...database.repositories.products_repo import ProductsRepo
from ...database.repositories.sales_repo import Sale, SaleItem, SalesRepo
from ...utils.loggers import get_logger
from ...utils.validators import is_positive_int, non_empty
from ..payments.payment_utilities.calculations import (
    line_subtotal,
    sale_total,
    status_from_paid,
    to_exact_money,
    to_money,
)

_log = get_logger("paint_pos.sales")


@dataclass
class LineRequest:
    color_id: str
    quantity: int
    rate: Optional[Decimal]


@dataclass
class CreateSaleResult:
    sale: Dict[str, Any]
    merged: bool


def _parse_quantity(value: Any, label: str = "Quantity") -> int:
    if not is_positive_int(value):
        raise ValidationError(f"{label} must be a positive whole number")
    return int(value)


def parse_line(raw: Mapping[str, Any]) -> LineRequest:
    """Accepts the wire shape {colorId, quantity, rate, subtotal}; subtotal is recomputed."""
    if not isinstance(raw, Mapping):
        raise ValidationError("Each item must be an object")
    color_id = raw.get("colorId")
    if not non_empty(color_id):
        raise ValidationError("Item colorId is required")
    qty = _parse_quantity(raw.get("quantity"))
    rate = raw.get("rate")
    if rate is None:
        parsed_rate = None
    else:
        try:
            parsed_rate = to_money(rate)
        except ValueError as exc:
            raise ValidationError("Item rate must be a number") from exc
        if parsed_rate < 0:
            raise ValidationError("Item rate cannot be negative")
    return LineRequest(str(color_id), qty, parsed_rate)


class SaleLifecycleManager:
    def __init__(self, conn: sqlite3.Connection, *, allow_oversell: bool = False):
        self.conn = conn
        self.sales = SalesRepo(conn)
        self.products = ProductsRepo(conn)
        self.inventory = InventoryRepo(conn, allow_oversell=allow_oversell)

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _resolve_rate(self, line: LineRequest) -> Decimal:
        """Client rate snapshot when given, else the variant's current rate."""
        color = self.products.get_color(line.color_id)
        if color is None:
            raise ValidationError(f"Color {line.color_id} does not exist")
        if line.rate is not None:
            return line.rate
        variant = self.products.require_variant(color.variant_id)
        return to_money(variant.rate)

    def _insert_line(self, sale_id: str, line: LineRequest, rate: Decimal) -> SaleItem:
        item = self.sales.insert_item(sale_id, line.color_id, line.quantity, rate)
        self.inventory.adjust_stock(
            line.color_id, -line.quantity, movement_type="sale",
            sale_id=sale_id, sale_item_id=item.id,
        )
        return item

    def _remove_line(self, item: SaleItem, movement_type: str) -> Sale:
        self.inventory.adjust_stock(
            item.color_id, int(item.quantity), movement_type=movement_type,
            sale_id=item.sale_id, sale_item_id=item.id,
        )
        self.sales.delete_item(item.id)
        return self.sales.recalculate_sale(item.sale_id)

    # ------------------------------------------------------------------
    # createSale
    # ------------------------------------------------------------------
    def create_sale(
        self,
        customer_name: str,
        customer_phone: str,
        items: Iterable[Mapping[str, Any]],
        *,
        amount_paid: Any = 0,
        total_amount: Any = None,
        payment_status: Optional[str] = None,
    ) -> CreateSaleResult:
        """
        Create a sale, or fold its lines into the customer's open bill.

        The status used to decide is computed from the lines and `amount_paid`;
        `total_amount` and `payment_status` from the client are advisory only.
        On the merge path `amount_paid` is not registered.
        """
        if not non_empty(customer_name):
            raise ValidationError("Customer name is required")
        if not non_empty(customer_phone):
            raise ValidationError("Customer phone is required")
        lines = [parse_line(raw) for raw in (items or [])]
        if not lines:
            raise ValidationError("At least one item is required")
        try:
            paid = to_exact_money(amount_paid if amount_paid is not None else 0)
        except ValueError as exc:
            raise ValidationError("Amount paid must be a number with at most two decimal places") from exc
        if paid < 0:
            raise ValidationError("Amount paid cannot be negative")

        name = str(customer_name).strip()
        phone = str(customer_phone).strip()

        with immediate_tx(self.conn):
            rates = [self._resolve_rate(line) for line in lines]
            total = sale_total(line_subtotal(line.quantity, r) for line, r in zip(lines, rates))
            status = status_from_paid(total, paid)
            if payment_status and payment_status != status:
                _log.debug("client status %r overridden by computed %r", payment_status, status)

            if status in OPEN_STATUSES:
                existing = self.sales.find_open_sale_by_phone(phone)
                if existing is not None:
                    for line, rate in zip(lines, rates):
                        self._insert_line(existing.id, line, rate)
                    self.sales.recalculate_sale(existing.id)
                    _log.info("Merged %d item(s) into open sale %s for %s", len(lines), existing.id, phone)
                    return CreateSaleResult(self.sales.get_sale(existing.id), merged=True)

            sale = self.sales.insert_header(name, phone)
            for line, rate in zip(lines, rates):
                self._insert_line(sale.id, line, rate)
            if paid > 0:
                self.sales.add_to_paid(sale.id, paid)
                self.sales.insert_payment(sale.id, paid, notes="Paid at sale")
            sale = self.sales.recalculate_sale(sale.id)
        _log.info("Created sale %s for %s total=%s status=%s", sale.id, phone, sale.total_amount,
                  sale.payment_status)
        return CreateSaleResult(self.sales.get_sale(sale.id), merged=False)

    # ------------------------------------------------------------------
    # item mutations
    # ------------------------------------------------------------------
    def add_sale_item(self, sale_id: str, raw_item: Mapping[str, Any]) -> SaleItem:
        line = parse_line(raw_item)
        with immediate_tx(self.conn):
            sale = self.sales.require_header(sale_id)
            rate = self._resolve_rate(line)
            item = self._insert_line(sale_id, line, rate)
            updated = self.sales.recalculate_sale(sale_id)
            if (sale.payment_status == "paid" and updated.payment_status in OPEN_STATUSES
                    and self.sales.count_open_sales(sale.customer_phone, exclude_sale_id=sale_id)):
                raise ConflictError(
                    "Customer already has an open bill; add items to that bill instead",
                    details={"openSaleId": self.sales.find_open_sale_by_phone(sale.customer_phone).id},
                )
        _log.debug("Added item %s to sale %s", item.id, sale_id)
        return item

    def delete_sale_item(self, sale_item_id: str) -> Sale:
        with immediate_tx(self.conn):
            item = self.sales.require_item(sale_item_id)
            sale = self._remove_line(item, "item_removed")
        _log.debug("Removed item %s from sale %s", sale_item_id, item.sale_id)
        return sale

    def return_sale_item(self, sale_item_id: str, quantity: Any,
                         reason: Optional[str] = None) -> Dict[str, Any]:
        qty = _parse_quantity(quantity, "Return quantity")
        reason = (reason or "").strip() or DEFAULT_RETURN_REASON
        with immediate_tx(self.conn):
            item = self.sales.require_item(sale_item_id)
            if qty > int(item.quantity):
                raise ValidationError("Return quantity exceeds purchased quantity")
            self.sales.insert_return(item, qty, reason)
            if qty == int(item.quantity):
                self._remove_line(item, "sale_return")
            else:
                self.sales.update_item_quantity(item.id, int(item.quantity) - qty)
                self.inventory.adjust_stock(
                    item.color_id, qty, movement_type="sale_return",
                    sale_id=item.sale_id, sale_item_id=item.id, notes=reason,
                )
                self.sales.recalculate_sale(item.sale_id)
        _log.info("Returned %d of item %s (sale %s): %s", qty, sale_item_id, item.sale_id, reason)
        return {"success": True}

    # ------------------------------------------------------------------
    # payments
    # ------------------------------------------------------------------
    def update_sale_payment(self, sale_id: str, amount: Any, *, receipt_ref: Optional[str] = None,
                            notes: Optional[str] = None) -> Sale:
        try:
            amt = to_exact_money(amount)
        except ValueError as exc:
            raise ValidationError("Payment amount must be a number with at most two decimal places") from exc
        if amt <= 0:
            raise ValidationError("Payment amount must be positive")
        with immediate_tx(self.conn):
            self.sales.add_to_paid(sale_id, amt)
            self.sales.insert_payment(sale_id, amt, receipt_ref=receipt_ref, notes=notes)
            sale = self.sales.recalculate_sale(sale_id)
        _log.info("Payment %s on sale %s -> %s", amt, sale_id, sale.payment_status)
        return sale

    # ------------------------------------------------------------------
    # deleteSale
    # ------------------------------------------------------------------
    def delete_sale(self, sale_id: str) -> None:
        with immediate_tx(self.conn):
            self.sales.require_header(sale_id)
            items: List[SaleItem] = self.sales.list_items(sale_id)
            for item in items:
                self.inventory.adjust_stock(
                    item.color_id, int(item.quantity), movement_type="sale_deleted",
                    sale_id=sale_id, sale_item_id=item.id,
                )
            self.sales.delete_header(sale_id)
        _log.info("Deleted sale %s (%d item(s) restocked)", sale_id, len(items))
