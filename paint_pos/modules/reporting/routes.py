from flask import Blueprint, jsonify

from ...database.repositories.queries import InventoryReportQuery, SalesReportQuery
from ...database.repositories.reporting_repo import ReportingRepo
from ...utils.api import degrade_to, get_db, parse_args
from .schemas import InventoryReportArgs, SalesReportArgs

bp = Blueprint("reports", __name__)


@bp.get("/reports/sales")
def sales_report():
    args = parse_args(SalesReportArgs)
    q = SalesReportQuery(start_date=args.startDate, end_date=args.endDate, group_by=args.groupBy)
    return jsonify(ReportingRepo(get_db()).sales_report(q))


@bp.get("/reports/inventory")
def inventory_report():
    args = parse_args(InventoryReportArgs)
    return jsonify(ReportingRepo(get_db()).inventory_report(InventoryReportQuery(args.lowStockThreshold)))


@bp.get("/reports/customer-debt")
@degrade_to(list)
def customer_debt_report():
    return jsonify(ReportingRepo(get_db()).customer_debt_report())
