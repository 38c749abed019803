# database/__init__.py
from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
import sqlite3
import uuid
from typing import Iterator

from paint_pos.constants import TABLE_SCHEMA_VERSION, SCHEMA_VERSION
from . import schema as schema_module


def _ensure_version_table(conn: sqlite3.Connection) -> None:
    conn.execute(f"""
        CREATE TABLE IF NOT EXISTS {TABLE_SCHEMA_VERSION}(
            id INTEGER PRIMARY KEY CHECK (id=1),
            version TEXT NOT NULL
        );
    """)
    row = conn.execute(
        f"SELECT version FROM {TABLE_SCHEMA_VERSION} WHERE id=1;"
    ).fetchone()
    if row is None:
        conn.execute(
            f"INSERT INTO {TABLE_SCHEMA_VERSION}(id, version) VALUES (1, ?);",
            (SCHEMA_VERSION,),
        )


def connect(db_path: Path | str, *, check_same_thread: bool = True) -> sqlite3.Connection:
    """Open an existing database: row_factory = sqlite3.Row, foreign_keys ON. No schema work."""
    conn = sqlite3.connect(str(db_path), timeout=30, check_same_thread=check_same_thread)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def get_connection(db_path: Path | str, *, check_same_thread: bool = True) -> sqlite3.Connection:
    """
    Returns a sqlite3.Connection with:
      - WAL mode
      - foreign_keys ON
      - row_factory = sqlite3.Row
    Ensures the schema is applied idempotently.
    """
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    schema_module.init_schema(db_path)

    conn = connect(db_path, check_same_thread=check_same_thread)
    conn.execute("PRAGMA journal_mode = WAL;")

    _ensure_version_table(conn)
    conn.commit()
    return conn


def get_schema_version(conn: sqlite3.Connection) -> str | None:
    row = conn.execute(
        f"SELECT version FROM {TABLE_SCHEMA_VERSION} WHERE id=1;"
    ).fetchone()
    return row["version"] if row else None


@contextmanager
def immediate_tx(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """
    Unit of work. The outermost call starts an IMMEDIATE transaction (write lock
    taken up front), commits on success and rolls back on error. Calls made while
    a transaction is already open run inside a SAVEPOINT so a failing inner step
    only undoes its own writes and re-raises to the caller.
    """
    if conn.in_transaction:
        name = f"sp_{uuid.uuid4().hex}"
        conn.execute(f"SAVEPOINT {name}")
        try:
            yield conn
        except Exception:
            conn.execute(f"ROLLBACK TO SAVEPOINT {name}")
            conn.execute(f"RELEASE SAVEPOINT {name}")
            raise
        conn.execute(f"RELEASE SAVEPOINT {name}")
        return

    cur = conn.cursor()
    try:
        cur.execute("BEGIN IMMEDIATE")
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        cur.close()


__all__ = [
    "connect",
    "get_connection",
    "get_schema_version",
    "immediate_tx",
]
