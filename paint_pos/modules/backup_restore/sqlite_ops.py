"""
modules/backup_restore/sqlite_ops.py

SQLite-aware helpers for copying a live database and checking a candidate file.

Public Interface
----------------
- create_consistent_snapshot(src_path, dest_path, progress_step=None) -> None
- quick_check(db_path) -> bool
- foreign_key_violations(db_path) -> int
- verify_database(db_path, fk_check=False) -> Tuple[bool, List[str]]

Notes
-----
- Uses the Online Backup API so a WAL database is copied consistently while the
  server keeps running. Never copies -wal/-shm files; the snapshot is one
  standalone file.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Callable, List, Optional, Tuple

__all__ = [
    "create_consistent_snapshot",
    "quick_check",
    "foreign_key_violations",
    "verify_database",
]


def _connect_ro(db_path: str) -> sqlite3.Connection:
    """Read-only URI connection; does not create -wal/-shm next to the file."""
    uri = f"file:{Path(db_path).as_posix()}?mode=ro"
    con = sqlite3.connect(uri, uri=True, isolation_level=None, check_same_thread=False)
    con.row_factory = sqlite3.Row
    return con


def create_consistent_snapshot(
    src_path: str,
    dest_path: str,
    progress_step: Optional[Callable[[int], None]] = None,
) -> None:
    """
    Copy the database at `src_path` into `dest_path` page by page.

    `progress_step` receives 0..100 while pages are copied.
    """
    Path(dest_path).parent.mkdir(parents=True, exist_ok=True)

    def _progress(_status: int, remaining: int, total: int) -> None:
        if progress_step and total > 0:
            progress_step(int((total - remaining) * 100 / total))

    src = sqlite3.connect(src_path, check_same_thread=False)
    dst = sqlite3.connect(dest_path, check_same_thread=False)
    try:
        src.backup(dst, pages=1024, progress=_progress)
        # the copy is read on its own, so fold it back to a rollback journal
        dst.execute("PRAGMA journal_mode=DELETE;")
    finally:
        dst.close()
        src.close()
    if progress_step:
        progress_step(100)


def quick_check(db_path: str) -> bool:
    """True iff PRAGMA quick_check answers exactly 'ok'."""
    p = Path(db_path)
    if not p.is_file():
        return False
    try:
        con = _connect_ro(str(p))
        try:
            row = con.execute("PRAGMA quick_check;").fetchone()
        finally:
            con.close()
    except sqlite3.DatabaseError:
        return False
    return bool(row) and isinstance(row[0], str) and row[0].lower() == "ok"


def foreign_key_violations(db_path: str) -> int:
    con = _connect_ro(db_path)
    try:
        return len(con.execute("PRAGMA foreign_key_check;").fetchall())
    finally:
        con.close()


def verify_database(db_path: str, fk_check: bool = False) -> Tuple[bool, List[str]]:
    """
    Returns (ok, details) where `details` holds short human-readable reasons
    when a check fails.
    """
    details: List[str] = []
    if not quick_check(db_path):
        return False, ["Not a readable SQLite database (quick_check failed)."]
    if fk_check:
        n = foreign_key_violations(db_path)
        if n:
            details.append(f"foreign_key_check violations: {n}")
    return not details, details
