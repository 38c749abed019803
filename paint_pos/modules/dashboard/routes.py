from flask import Blueprint, current_app, jsonify

from ...database.repositories.dashboard_repo import DashboardRepo
from ...utils.api import degrade_to, get_db

bp = Blueprint("dashboard", __name__)


@bp.get("/dashboard-stats")
@degrade_to(DashboardRepo.empty_stats)
def dashboard_stats():
    repo = DashboardRepo(get_db(), low_stock_threshold=current_app.config.get("LOW_STOCK_THRESHOLD", 10))
    return jsonify(repo.stats())
