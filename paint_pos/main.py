"""
Entry points.

    paint-pos            desktop shell (PySide6 window hosting the server)
    paint-pos-server     HTTP server only, for development
"""
import sys

from PySide6.QtWidgets import QApplication

from paint_pos.app import create_app
from paint_pos.config import HOST, PORT, DevelopmentConfig, resolve_db_path
from paint_pos.constants import APP_NAME
from paint_pos.modules.shell.window import MainWindow
from paint_pos.utils.settings_store import SettingsStore


def main():
    app = QApplication.instance()
    if app is None:
        app = QApplication(sys.argv)
    app.setApplicationName(APP_NAME)

    win = MainWindow(SettingsStore())
    win.show()
    sys.exit(app.exec())


def run_server():
    settings = SettingsStore()
    db_path = resolve_db_path(settings.get("databasePath"))
    create_app(DevelopmentConfig, db_path=db_path).run(host=HOST, port=PORT, use_reloader=False)


if __name__ == "__main__":
    main()
