"""
modules/backup_restore/fsops.py

File-system utilities for writing exported database files atomically.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional

__all__ = ["ensure_writable_dir", "make_temp_file", "atomic_move"]


def _fsync_dir(path: Path) -> None:
    """fsync a directory after a rename; not available on every platform."""
    try:
        fd = os.open(str(path), os.O_RDONLY)
    except OSError:
        return
    try:
        os.fsync(fd)
    except OSError:
        pass
    finally:
        os.close(fd)


def ensure_writable_dir(path: str) -> None:
    """Raise RuntimeError with a readable message if `path` cannot receive files."""
    p = Path(path)
    if not p.exists():
        raise RuntimeError(f"Destination folder does not exist: {p}")
    if not p.is_dir():
        raise RuntimeError(f"Destination path is not a folder: {p}")
    if not os.access(str(p), os.W_OK | os.X_OK):
        raise RuntimeError(f"Destination folder is not writable: {p}")


def make_temp_file(suffix: str = "", dir: Optional[str] = None) -> str:
    """
    Create an empty file that survives close and return its absolute path.
    Caller moves or removes it.
    """
    d = Path(dir) if dir else Path(tempfile.gettempdir())
    d.mkdir(parents=True, exist_ok=True)
    fd, name = tempfile.mkstemp(prefix="paintpos_", suffix=suffix, dir=str(d))
    os.close(fd)
    return str(Path(name).resolve())


def atomic_move(src: str, dest: str) -> None:
    """
    Move `src` over `dest`. Same volume: os.replace. Across volumes: copy to a
    `.part` file beside `dest`, then os.replace, then remove `src`.
    """
    src_p = Path(src).resolve()
    dest_p = Path(dest).resolve()
    dest_p.parent.mkdir(parents=True, exist_ok=True)
    try:
        os.replace(str(src_p), str(dest_p))
    except OSError:
        part = dest_p.with_name(dest_p.name + ".part")
        shutil.copy2(str(src_p), str(part))
        os.replace(str(part), str(dest_p))
        src_p.unlink(missing_ok=True)
    _fsync_dir(dest_p.parent)
