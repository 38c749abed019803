"""
modules/shell/window.py

Main desktop window. Owns the running HTTP server and the database file it
serves: choosing a new location, exporting a snapshot and importing another
database all go through here, and the chosen path is persisted in the
settings store.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from PySide6.QtCore import QObject, QRect, QUrl, Qt, Signal
from PySide6.QtGui import QAction, QDesktopServices
from PySide6.QtWidgets import (
    QFileDialog,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QProgressBar,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from ...app import create_app
from ...config import HOST, PORT, Config, resolve_db_path
from ...constants import APP_NAME, WINDOW_DEFAULT_SIZE, WINDOW_MIN_SIZE
from ...database.repositories.errors import DomainError
from ...utils.loggers import get_logger
from ...utils.settings_store import SettingsStore
from ...utils.ui_helpers import error, info
from ..backup_restore.service import ExportJob, import_database
from .server_thread import ServerThread

_log = get_logger("paint_pos.shell")

DB_FILTER = "Database Files (*.db);;All Files (*)"


class _ExportSignals(QObject):
    """Carries worker-thread callbacks back onto the UI thread."""
    progress = Signal(int)
    finished = Signal(bool, str, object)


class MainWindow(QMainWindow):
    server_restarted = Signal(str)
    export_finished = Signal(bool, str, object)

    def __init__(
        self,
        settings: SettingsStore,
        *,
        config_class: type = Config,
        host: str = HOST,
        port: int = PORT,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self.settings = settings
        self.config_class = config_class
        self.host = host
        self.port = port
        self.server: Optional[ServerThread] = None
        self.db_path = str(resolve_db_path(settings.get("databasePath")))

        self.setWindowTitle(APP_NAME)
        self.setMinimumSize(*WINDOW_MIN_SIZE)
        self._restore_bounds()
        self._build_ui()
        self._build_menu()

        self._export_job = ExportJob()
        self._export_signals = _ExportSignals()
        self._export_signals.progress.connect(self.progress.setValue)
        self._export_signals.finished.connect(self._on_export_finished)

        self.start_server()

    # ------------------------------------------------------------------
    # UI
    # ------------------------------------------------------------------
    def _build_ui(self) -> None:
        central = QWidget(self)
        layout = QVBoxLayout(central)

        form = QFormLayout()
        self.url_label = QLabel("-")
        self.url_label.setTextInteractionFlags(Qt.TextSelectableByMouse)
        self.db_label = QLabel(self.db_path)
        self.db_label.setTextInteractionFlags(Qt.TextSelectableByMouse)
        form.addRow("Server:", self.url_label)
        form.addRow("Database:", self.db_label)
        layout.addLayout(form)

        buttons = QHBoxLayout()
        self.btn_open = QPushButton("Open in Browser")
        self.btn_select = QPushButton("Select Database Location…")
        self.btn_export = QPushButton("Export Database…")
        self.btn_import = QPushButton("Import Database…")
        for b in (self.btn_open, self.btn_select, self.btn_export, self.btn_import):
            buttons.addWidget(b)
        buttons.addStretch(1)
        layout.addLayout(buttons)

        self.progress = QProgressBar()
        self.progress.setRange(0, 100)
        self.progress.setVisible(False)
        layout.addWidget(self.progress)
        layout.addStretch(1)
        self.setCentralWidget(central)

        self.btn_open.clicked.connect(self.open_in_browser)
        self.btn_select.clicked.connect(lambda: self.select_database_location())
        self.btn_export.clicked.connect(lambda: self.export_database())
        self.btn_import.clicked.connect(lambda: self.import_database())

    def _build_menu(self) -> None:
        menu = self.menuBar().addMenu("&File")
        for text, slot in (
            ("Open in Browser", self.open_in_browser),
            ("Select Database Location…", lambda: self.select_database_location()),
            ("Export Database…", lambda: self.export_database()),
            ("Import Database…", lambda: self.import_database()),
        ):
            act = QAction(text, self)
            act.triggered.connect(slot)
            menu.addAction(act)
        menu.addSeparator()
        quit_act = QAction("Quit", self)
        quit_act.triggered.connect(self.close)
        menu.addAction(quit_act)

    # ------------------------------------------------------------------
    # Window bounds
    # ------------------------------------------------------------------
    def _restore_bounds(self) -> None:
        b = self.settings.get("windowBounds") or {}
        width = int(b.get("width") or WINDOW_DEFAULT_SIZE[0])
        height = int(b.get("height") or WINDOW_DEFAULT_SIZE[1])
        self.resize(max(width, WINDOW_MIN_SIZE[0]), max(height, WINDOW_MIN_SIZE[1]))
        if b.get("x") is not None and b.get("y") is not None:
            self.move(int(b["x"]), int(b["y"]))

    def save_bounds(self) -> None:
        g: QRect = self.geometry()
        self.settings.set("windowBounds", {"width": g.width(), "height": g.height(), "x": g.x(), "y": g.y()})

    def resizeEvent(self, event) -> None:  # noqa: N802
        super().resizeEvent(event)
        self.save_bounds()

    def moveEvent(self, event) -> None:  # noqa: N802
        super().moveEvent(event)
        self.save_bounds()

    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------
    @property
    def server_url(self) -> str:
        return self.server.url if self.server else ""

    def start_server(self) -> None:
        """(Re)start the HTTP server on self.db_path; the schema is created if needed."""
        self.stop_server()
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        app = create_app(self.config_class, db_path=self.db_path)
        self.server = ServerThread(app, self.host, self.port)
        self.server.start()
        self.url_label.setText(self.server.url)
        self.db_label.setText(self.db_path)
        self.server_restarted.emit(self.server.url)

    def stop_server(self) -> None:
        if self.server is not None:
            self.server.shutdown()
            self.server = None

    def switch_database(self, path: str) -> None:
        """Persist `path` as the database location and restart the server on it."""
        self.db_path = str(Path(path).expanduser().resolve())
        self.settings.set("databasePath", self.db_path)
        _log.info("Switching database to %s", self.db_path)
        self.start_server()

    def open_in_browser(self) -> None:
        if self.server:
            QDesktopServices.openUrl(QUrl(self.server.url))

    # ------------------------------------------------------------------
    # Database file actions
    # ------------------------------------------------------------------
    def select_database_location(self, path: Optional[str] = None) -> Optional[str]:
        if path is None:
            path, _ = QFileDialog.getSaveFileName(self, "Select Database Location", self.db_path, DB_FILTER)
        if not path:
            return None
        self.switch_database(path)
        return self.db_path

    def export_database(self, path: Optional[str] = None) -> Optional[str]:
        """Start a background snapshot of the live database to `path`."""
        if path is None:
            default = str(Path(self.db_path).with_name("paintstore-backup.db"))
            path, _ = QFileDialog.getSaveFileName(self, "Export Database", default, DB_FILTER)
        if not path:
            return None
        self.progress.setValue(0)
        self.progress.setVisible(True)
        self.btn_export.setEnabled(False)
        self._export_job.run_async(self.db_path, path, self._export_signals_proxy())
        return path

    def _export_signals_proxy(self):
        signals = self._export_signals

        class _Proxy:
            def progress(self, pct: int) -> None:
                signals.progress.emit(pct)

            def finished(self, ok: bool, message: str, out: Optional[str]) -> None:
                signals.finished.emit(ok, message, out)

        return _Proxy()

    def _on_export_finished(self, ok: bool, message: str, out: Optional[str]) -> None:
        self.progress.setVisible(False)
        self.btn_export.setEnabled(True)
        self.export_finished.emit(ok, message, out)
        if not self.isVisible():
            return
        if ok:
            info(self, "Export Database", f"{message}\n\n{out}")
        else:
            error(self, "Export Database", message)

    def import_database(self, path: Optional[str] = None) -> Optional[str]:
        """Validate the chosen file, then switch the server over to it."""
        if path is None:
            path, _ = QFileDialog.getOpenFileName(self, "Import Database", str(Path(self.db_path).parent),
                                                  DB_FILTER)
        if not path:
            return None
        try:
            resolved = import_database(path)
        except DomainError as exc:
            _log.warning("Import rejected for %s: %s", path, exc.message)
            if self.isVisible():
                error(self, "Import Database", exc.message)
            return None
        self.switch_database(resolved)
        return resolved

    def closeEvent(self, event) -> None:  # noqa: N802
        self.save_bounds()
        self.stop_server()
        super().closeEvent(event)
