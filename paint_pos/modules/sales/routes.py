from flask import Blueprint, current_app, jsonify, request

from ...database.repositories.errors import NotFoundError
from ...database.repositories.sales_repo import SalesRepo
from ...utils.api import degrade_to, get_db, parse_body
from .lifecycle import SaleLifecycleManager
from .schemas import PaymentIn, ReturnIn, SaleCreate, SaleItemIn

bp = Blueprint("sales", __name__)


def _manager() -> SaleLifecycleManager:
    return SaleLifecycleManager(get_db(), allow_oversell=current_app.config.get("ALLOW_OVERSELL", False))


# ---------- Reads ----------

@bp.get("/sales")
@degrade_to(list)
def list_sales():
    return jsonify([s.to_dict() for s in SalesRepo(get_db()).list_sales()])


@bp.get("/sales/recent")
@degrade_to(list)
def recent_sales():
    limit = request.args.get("limit", default=10, type=int)
    return jsonify([s.to_dict() for s in SalesRepo(get_db()).recent_sales(limit)])


@bp.get("/sales/unpaid")
@degrade_to(list)
def unpaid_sales():
    return jsonify([s.to_dict() for s in SalesRepo(get_db()).list_unpaid()])


@bp.get("/sales/<sale_id>")
def get_sale(sale_id: str):
    sale = SalesRepo(get_db()).get_sale(sale_id)
    if sale is None:
        raise NotFoundError("Sale not found")
    return jsonify(sale)


@bp.get("/sales/<sale_id>/history")
def sale_history(sale_id: str):
    """Payments and returns recorded against a sale."""
    repo = SalesRepo(get_db())
    repo.require_header(sale_id)
    return jsonify({"payments": repo.list_payments(sale_id), "returns": repo.list_returns(sale_id)})


# ---------- Writes ----------

@bp.post("/sales")
def create_sale():
    body = parse_body(SaleCreate)
    result = _manager().create_sale(
        body.customerName,
        body.customerPhone,
        [item.model_dump() for item in body.items],
        amount_paid=body.amountPaid,
        total_amount=body.totalAmount,
        payment_status=body.paymentStatus,
    )
    return jsonify(result.sale), (200 if result.merged else 201)


@bp.post("/sales/<sale_id>/payment")
def record_payment(sale_id: str):
    body = parse_body(PaymentIn)
    sale = _manager().update_sale_payment(sale_id, body.amount, notes=body.notes)
    return jsonify(sale.to_dict())


@bp.post("/sales/<sale_id>/items")
def add_item(sale_id: str):
    body = parse_body(SaleItemIn)
    item = _manager().add_sale_item(sale_id, body.model_dump())
    return jsonify(item.to_dict()), 201


@bp.delete("/sale-items/<item_id>")
def delete_item(item_id: str):
    _manager().delete_sale_item(item_id)
    return jsonify({"success": True})


@bp.post("/sale-items/<item_id>/return")
def return_item(item_id: str):
    body = parse_body(ReturnIn)
    return jsonify(_manager().return_sale_item(item_id, body.quantity, body.reason))


@bp.delete("/sales/<sale_id>")
def delete_sale(sale_id: str):
    _manager().delete_sale(sale_id)
    return jsonify({"success": True})
