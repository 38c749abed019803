from flask import Blueprint, current_app, jsonify, request

from ...database.repositories.customers_repo import CustomersRepo
from ...database.repositories.queries import AccountFilter
from ...utils.api import degrade_to, get_db, parse_args, parse_body
from ..sales.lifecycle import SaleLifecycleManager
from .consolidation import BillConsolidationEngine, account_to_dict
from .schemas import AccountFilterArgs, CustomerPaymentIn

bp = Blueprint("customers", __name__)


def _engine() -> BillConsolidationEngine:
    conn = get_db()
    lifecycle = SaleLifecycleManager(conn, allow_oversell=current_app.config.get("ALLOW_OVERSELL", False))
    return BillConsolidationEngine(conn, lifecycle)


@bp.get("/customers/suggestions")
@degrade_to(list)
def suggestions():
    limit = request.args.get("limit", default=10, type=int)
    return jsonify(CustomersRepo(get_db()).suggestions(limit))


@bp.get("/customers/search")
@degrade_to(list)
def search():
    return jsonify(CustomersRepo(get_db()).search(request.args.get("query", "")))


@bp.get("/customers/<phone>/bills")
@degrade_to(list)
def bills(phone: str):
    return jsonify([s.to_dict() for s in CustomersRepo(get_db()).bills(phone)])


@bp.get("/customers/accounts")
@degrade_to(list)
def accounts():
    """Open bills consolidated per phone."""
    args = parse_args(AccountFilterArgs)
    flt = AccountFilter(search=args.search, status=args.status, amount=args.amount)
    return jsonify([account_to_dict(a) for a in _engine().list_accounts(flt)])


@bp.get("/customers/<phone>/account")
def account(phone: str):
    return jsonify(account_to_dict(_engine().get_account(phone)))


@bp.post("/customers/<phone>/payment")
def allocate_payment(phone: str):
    body = parse_body(CustomerPaymentIn)
    return jsonify(_engine().allocate_payment(phone, body.amount, notes=body.notes))
