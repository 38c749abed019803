"""
HTTP JSON server: Flask app factory wiring the module blueprints under /api.
"""
from __future__ import annotations

import logging
from pathlib import Path

from flask import Flask, current_app, jsonify

from .config import LOG_LEVEL, Config
from .database import get_connection
from .modules.backup_restore.routes import bp as data_transfer_bp
from .modules.customer.routes import bp as customers_bp
from .modules.dashboard.routes import bp as dashboard_bp
from .modules.inventory.routes import bp as inventory_bp
from .modules.product.routes import bp as catalog_bp
from .modules.reporting.routes import bp as reports_bp
from .modules.sales.routes import bp as sales_bp
from .utils.api import close_db, register_error_handlers
from .utils.loggers import get_logger

API_PREFIX = "/api"

BLUEPRINTS = (
    catalog_bp,
    inventory_bp,
    sales_bp,
    customers_bp,
    dashboard_bp,
    reports_bp,
    data_transfer_bp,
)

_log = get_logger("paint_pos.app")


def create_app(config_class: type = Config, *, db_path: str | Path | None = None) -> Flask:
    """
    Build the app. `db_path` overrides the configured DATABASE_PATH; the file
    and its directory are created and the schema brought up to date here.
    """
    app = Flask(__name__)
    app.config.from_object(config_class)
    if db_path is not None:
        app.config["DATABASE_PATH"] = str(db_path)
    app.json.sort_keys = False
    app.logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))

    get_connection(app.config["DATABASE_PATH"]).close()

    for bp in BLUEPRINTS:
        app.register_blueprint(bp, url_prefix=API_PREFIX)
    register_error_handlers(app)
    app.teardown_appcontext(close_db)

    @app.get(f"{API_PREFIX}/health")
    def health():
        return jsonify({"status": "ok", "database": current_app.config["DATABASE_PATH"]})

    _log.info("App ready on database %s", app.config["DATABASE_PATH"])
    return app
