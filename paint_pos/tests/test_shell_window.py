"""
Suite: desktop shell

- the window starts the HTTP server on the configured database
- selecting or importing a database persists the path and restarts the server
- export runs in the background and reports through export_finished
- window bounds are saved to and restored from settings
"""
import json
import urllib.request

import pytest

from paint_pos.config import TestingConfig
from paint_pos.constants import APP_NAME
from paint_pos.database import get_connection
from paint_pos.modules.shell.window import MainWindow


@pytest.fixture()
def window(qtbot, settings, db_path, monkeypatch):
    monkeypatch.delenv("PAINT_POS_DB_PATH", raising=False)
    settings.set("databasePath", str(db_path))
    win = MainWindow(settings, config_class=TestingConfig, host="127.0.0.1", port=0)
    qtbot.addWidget(win)
    yield win
    win.stop_server()


def _health(win):
    with urllib.request.urlopen(win.server_url + "/api/health", timeout=5) as resp:
        return json.loads(resp.read().decode("utf-8"))


def test_window_serves_configured_database(window, db_path):
    assert window.windowTitle() == APP_NAME
    assert window.minimumWidth() == 1024 and window.minimumHeight() == 768
    assert window.url_label.text() == window.server_url
    assert _health(window) == {"status": "ok", "database": str(db_path)}


def test_select_location_switches_and_persists(qtbot, window, settings, tmp_path):
    target = tmp_path / "shop" / "store.db"
    with qtbot.waitSignal(window.server_restarted, timeout=5000):
        assert window.select_database_location(str(target)) == str(target.resolve())
    assert settings.get("databasePath") == str(target.resolve())
    assert target.exists()
    assert _health(window)["database"] == str(target.resolve())


def test_import_valid_database(qtbot, window, settings, tmp_path):
    other = tmp_path / "other.db"
    get_connection(other).close()
    with qtbot.waitSignal(window.server_restarted, timeout=5000):
        resolved = window.import_database(str(other))
    assert resolved == str(other.resolve())
    assert window.db_path == resolved
    assert settings.get("databasePath") == resolved
    assert window.db_label.text() == resolved


def test_import_invalid_file_keeps_current_database(window, settings, db_path, tmp_path):
    junk = tmp_path / "junk.db"
    junk.write_text("nope")
    assert window.import_database(str(junk)) is None
    assert window.db_path == str(db_path)
    assert settings.get("databasePath") == str(db_path)


def test_export_runs_in_background(qtbot, window, tmp_path):
    dest = tmp_path / "backup.db"
    with qtbot.waitSignal(window.export_finished, timeout=10000) as blocker:
        assert window.export_database(str(dest)) == str(dest)
    ok, _message, out = blocker.args
    assert ok is True
    assert out == str(dest.resolve())
    assert dest.exists()
    assert window.btn_export.isEnabled()
    assert not window.progress.isVisible()


def test_export_failure_is_reported(qtbot, window, db_path):
    with qtbot.waitSignal(window.export_finished, timeout=10000) as blocker:
        window.export_database(str(db_path))
    assert blocker.args[0] is False
    assert blocker.args[2] is None


def test_bounds_saved_and_restored(qtbot, window, settings, db_path):
    window.resize(1100, 800)
    window.save_bounds()
    bounds = settings.get("windowBounds")
    assert (bounds["width"], bounds["height"]) == (1100, 800)

    again = MainWindow(settings, config_class=TestingConfig, host="127.0.0.1", port=0)
    qtbot.addWidget(again)
    try:
        assert (again.width(), again.height()) == (1100, 800)
    finally:
        again.stop_server()


def test_close_stops_server(window):
    window.show()
    window.close()
    assert window.server is None
