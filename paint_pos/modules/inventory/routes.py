from flask import Blueprint, current_app, jsonify, request

from ...database.repositories.inventory_repo import InventoryRepo
from ...database.repositories.products_repo import ProductsRepo
from ...utils.api import degrade_to, get_db, parse_body
from .schemas import BulkStockInIn, StockInIn, StockSetIn

bp = Blueprint("inventory", __name__)


def _repo() -> InventoryRepo:
    return InventoryRepo(get_db(), allow_oversell=current_app.config.get("ALLOW_OVERSELL", False))


@bp.patch("/colors/<color_id>/stock")
def set_stock(color_id: str):
    body = parse_body(StockSetIn)
    _repo().set_stock(color_id, body.stockQuantity)
    return jsonify(ProductsRepo(get_db()).get_color_detail(color_id))


@bp.post("/colors/<color_id>/stock-in")
def stock_in(color_id: str):
    body = parse_body(StockInIn)
    _repo().stock_in(color_id, body.quantity, notes=body.notes)
    return jsonify(ProductsRepo(get_db()).get_color_detail(color_id))


@bp.get("/colors/<color_id>/movements")
@degrade_to(list)
def movements(color_id: str):
    ProductsRepo(get_db()).require_color(color_id)
    limit = request.args.get("limit", default=100, type=int)
    return jsonify(_repo().list_movements(color_id, limit))


@bp.post("/bulk/stock-in")
def bulk_stock_in():
    body = parse_body(BulkStockInIn)
    return jsonify({"results": _repo().bulk_stock_in([i.model_dump() for i in body.items])})


@bp.get("/inventory/low-stock")
@degrade_to(list)
def low_stock():
    threshold = request.args.get(
        "threshold", default=current_app.config.get("LOW_STOCK_THRESHOLD", 10), type=int,
    )
    return jsonify(_repo().low_stock(threshold))
