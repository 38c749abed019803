from flask import Blueprint, jsonify, request

from ...utils.api import get_db, parse_body
from .data_transfer import export_data, import_data
from .schemas import ImportIn

bp = Blueprint("data_transfer", __name__)


@bp.get("/export/data")
def export():
    return jsonify(export_data(get_db(), request.args.get("type", "all")))


@bp.post("/import/data")
def import_():
    body = parse_body(ImportIn)
    counts = import_data(get_db(), body.data, body.type)
    return jsonify({"success": True, "imported": counts})
