"""
modules/shell/server_thread.py

Runs the Flask app on a werkzeug WSGI server inside a QThread so the Qt event
loop stays responsive. The socket is bound in the constructor; port 0 picks a
free port.
"""
from __future__ import annotations

from flask import Flask
from PySide6.QtCore import QThread
from werkzeug.serving import make_server

from ...utils.loggers import get_logger

_log = get_logger("paint_pos.shell")


class ServerThread(QThread):
    def __init__(self, app: Flask, host: str, port: int, parent=None) -> None:
        super().__init__(parent)
        self.app = app
        self._server = make_server(host, port, app, threaded=True)
        self.host = host
        self.port = self._server.server_port

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def run(self) -> None:  # type: ignore[override]
        _log.info("Serving %s", self.url)
        self._server.serve_forever()

    def shutdown(self, timeout_ms: int = 5000) -> None:
        """Stop serve_forever, release the socket and wait for the thread."""
        if self.isRunning():
            self._server.shutdown()
            self.wait(timeout_ms)
        self._server.server_close()
        _log.info("Stopped %s", self.url)
