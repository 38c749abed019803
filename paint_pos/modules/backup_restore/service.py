"""
modules/backup_restore/service.py

Database file operations behind the desktop shell's menu.

Public interface
----------------
- export_database(src_path, dest_path, progress=None) -> str
- validate_database_file(path) -> None              # raises ValidationError
- import_database(path) -> str                      # validated absolute path
- ExportJob.run_async(src_path, dest_path, callbacks) -> None

ExportJob runs the export on a QThreadPool worker. `callbacks` is any object
exposing some of:
- progress(pct: int)
- finished(success: bool, message: str, path: Optional[str])
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from PySide6.QtCore import QObject, QRunnable, QThreadPool, Slot

from ...database.repositories.errors import ValidationError
from ...database.schema import missing_tables
from ...utils.loggers import get_logger
from . import fsops, sqlite_ops

_log = get_logger("paint_pos.backup")


def export_database(
    src_path: str,
    dest_path: str,
    progress: Optional[Callable[[int], None]] = None,
) -> str:
    """
    Write a consistent copy of the live database to `dest_path`.

    The snapshot is taken into a temp file next to the destination, checked,
    then moved into place, so a failed export never leaves a half-written file.
    """
    src = Path(src_path)
    if not src.is_file():
        raise ValidationError(f"Database file not found: {src}")
    dest = Path(dest_path).expanduser().resolve()
    if dest == src.resolve():
        raise ValidationError("Choose a different file than the live database")
    if dest.exists() and dest.is_dir():
        raise ValidationError("Destination path refers to a directory, not a file")
    fsops.ensure_writable_dir(str(dest.parent))

    tmp = fsops.make_temp_file(suffix=".db", dir=str(dest.parent))
    try:
        sqlite_ops.create_consistent_snapshot(str(src), tmp, progress)
        ok, details = sqlite_ops.verify_database(tmp)
        if not ok:
            raise RuntimeError("Snapshot verification failed: " + "; ".join(details))
        fsops.atomic_move(tmp, str(dest))
    finally:
        Path(tmp).unlink(missing_ok=True)
    _log.info("Exported database %s -> %s", src, dest)
    return str(dest)


def validate_database_file(path: str) -> None:
    """A usable database opens cleanly, has no dangling foreign keys and carries the catalog and sales tables."""
    p = Path(path)
    if not p.is_file():
        raise ValidationError(f"File not found: {p}")
    ok, details = sqlite_ops.verify_database(str(p), fk_check=True)
    if not ok:
        raise ValidationError("Selected file is not a valid database", details={"checks": details})
    con = sqlite3.connect(f"file:{p.as_posix()}?mode=ro", uri=True)
    try:
        missing = missing_tables(con)
    finally:
        con.close()
    if missing:
        raise ValidationError(
            "Selected database is missing required tables",
            details={"missingTables": missing},
        )


def import_database(path: str) -> str:
    """
    Validate `path` for use as the live database and return its absolute form.
    The caller persists it and restarts the server on it.
    """
    resolved = str(Path(path).expanduser().resolve())
    validate_database_file(resolved)
    _log.info("Database import validated: %s", resolved)
    return resolved


# ----------------------------
# Background export
# ----------------------------

@dataclass
class _Callbacks:
    progress: Optional[Callable[[int], None]] = None
    finished: Optional[Callable[[bool, str, Optional[str]], None]] = None


class _JobRunnable(QRunnable):
    def __init__(self, work: Callable[[], None]) -> None:
        super().__init__()
        self.setAutoDelete(True)
        self._work = work

    @Slot()
    def run(self) -> None:  # type: ignore[override]
        self._work()


class ExportJob(QObject):
    """Runs export_database off the UI thread."""

    def __init__(self, pool: Optional[QThreadPool] = None) -> None:
        super().__init__()
        self._pool = pool or QThreadPool.globalInstance()

    def run_async(self, src_path: str, dest_path: str, callbacks) -> None:
        cb = _Callbacks(
            progress=getattr(callbacks, "progress", None),
            finished=getattr(callbacks, "finished", None),
        )
        self._pool.start(_JobRunnable(lambda: self._run(src_path, dest_path, cb)))

    def _run(self, src_path: str, dest_path: str, cb: _Callbacks) -> None:
        try:
            out = export_database(src_path, dest_path, cb.progress)
        except (ValidationError, RuntimeError, OSError, sqlite3.Error) as exc:
            _log.error("Export failed: %s", exc)
            if cb.finished:
                cb.finished(False, f"Export failed.\n\n{exc}", None)
            return
        if cb.finished:
            cb.finished(True, "Database exported successfully.", out)
