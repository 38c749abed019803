"""
utils/settings_store.py

Small persistent key/value store for desktop preferences (database location,
window bounds, first-run flags). Stored as one JSON document; writes go to a
temp file in the same folder and are swapped in with os.replace().
"""
from __future__ import annotations

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from paint_pos.constants import APP_SLUG, SETTINGS_FILE_NAME
from paint_pos.utils.loggers import get_logger

_log = get_logger("paint_pos.settings")


def default_settings_path() -> Path:
    env = os.getenv("PAINT_POS_SETTINGS_PATH")
    if env:
        return Path(env).expanduser()
    return Path.home() / ".config" / APP_SLUG / SETTINGS_FILE_NAME


class SettingsStore:
    def __init__(self, path: Optional[Path | str] = None):
        self.path = Path(path) if path else default_settings_path()
        self._lock = threading.Lock()
        self._data: Dict[str, Any] = self._load()

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            _log.warning("Ignoring unreadable settings file %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value
            self._flush()

    def delete(self, key: str) -> None:
        with self._lock:
            if key in self._data:
                del self._data[key]
                self._flush()

    def as_dict(self) -> Dict[str, Any]:
        with self._lock:
            return dict(self._data)

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=".settings_", suffix=".json", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(self._data, fh, indent=2, sort_keys=True)
            os.replace(tmp, self.path)
        except Exception:
            Path(tmp).unlink(missing_ok=True)
            raise
