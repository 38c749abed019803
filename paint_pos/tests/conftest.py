# paint_pos/tests/conftest.py
# ---------------------------------------------------------------------
# Ground rules:
# - Every test gets its own file-backed SQLite DB under tmp_path, created
#   through database.get_connection (schema + WAL + version row)
# - conn.row_factory = sqlite3.Row, PRAGMA foreign_keys=ON
# - A small paint catalog is seeded for sales/stock tests
# - pytest-qt owns QApplication (use qapp/qtbot fixtures); Qt runs offscreen
# ---------------------------------------------------------------------

from __future__ import annotations

import os
import sqlite3
from pathlib import Path

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from paint_pos.app import create_app
from paint_pos.config import TestingConfig
from paint_pos.database import get_connection
from paint_pos.database.repositories.products_repo import ProductsRepo
from paint_pos.modules.customer.consolidation import BillConsolidationEngine
from paint_pos.modules.sales.lifecycle import SaleLifecycleManager
from paint_pos.utils.settings_store import SettingsStore


# ---------- Database ----------
@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "paintstore.db"


@pytest.fixture()
def conn(db_path: Path):
    con = get_connection(db_path)
    try:
        yield con
    finally:
        con.close()


# ---------- Seeded catalog ----------
@pytest.fixture()
def catalog(conn: sqlite3.Connection) -> dict:
    """
    One product with two packings and three colors:
      red   (1L @ 500.00, stock 20)
      blue  (1L @ 500.00, stock 15)
      white (4L @ 1800.00, stock 5)
    """
    repo = ProductsRepo(conn)
    p = repo.create("Asian Paints", "Apex Emulsion")
    litre = repo.create_variant(p.id, "1L", "500")
    gallon = repo.create_variant(p.id, "4L", "1800")
    red = repo.create_color(litre.id, "Signal Red", "AP-101", 20)
    blue = repo.create_color(litre.id, "Ocean Blue", "AP-102", 15)
    white = repo.create_color(gallon.id, "Snow White", "AP-001", 5)
    return {
        "product": p.id,
        "litre": litre.id,
        "gallon": gallon.id,
        "red": red.id,
        "blue": blue.id,
        "white": white.id,
    }


@pytest.fixture()
def manager(conn) -> SaleLifecycleManager:
    return SaleLifecycleManager(conn)


@pytest.fixture()
def engine(conn, manager) -> BillConsolidationEngine:
    return BillConsolidationEngine(conn, manager)


# ---------- Flask ----------
@pytest.fixture()
def flask_app(db_path: Path):
    return create_app(TestingConfig, db_path=db_path)


@pytest.fixture()
def client(flask_app, catalog):
    """Test client over the same DB file the catalog fixture seeded."""
    return flask_app.test_client()


# ---------- Desktop settings ----------
@pytest.fixture()
def settings(tmp_path: Path) -> SettingsStore:
    return SettingsStore(tmp_path / "config" / "settings.json")
