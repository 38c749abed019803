# paint_pos/config.py
import os
from pathlib import Path

from dotenv import load_dotenv

from paint_pos.constants import (
    DATA_DIR,
    DB_FILE_NAME,
    DEFAULT_HOST,
    DEFAULT_LOW_STOCK_THRESHOLD,
    DEFAULT_PORT,
)

load_dotenv()


def _env_string(name: str, default: str | None = None) -> str | None:
    """Return trimmed string-valued env vars, normalizing empty strings to None."""
    raw = os.getenv(name, default)
    if raw is None:
        return default
    clean = raw.strip()
    return clean if clean else default


def _env_int(name: str, default: int) -> int:
    raw = _env_string(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_flag(name: str, default: bool = False) -> bool:
    raw = _env_string(name)
    if raw is None:
        return default
    return raw.lower() in ("1", "true", "yes", "on")


def default_db_path() -> Path:
    """~/Documents/PaintStorePOS/paintstore.db"""
    return Path.home() / "Documents" / DATA_DIR / DB_FILE_NAME


def resolve_db_path(stored: str | None = None) -> Path:
    """
    Resolution order:
      1) PAINT_POS_DB_PATH
      2) `stored` (the desktop settings' databasePath)
      3) default_db_path()
    """
    env = _env_string("PAINT_POS_DB_PATH")
    if env:
        return Path(env).expanduser()
    if stored:
        return Path(stored).expanduser()
    return default_db_path()


HOST = _env_string("PAINT_POS_HOST", DEFAULT_HOST)
PORT = _env_int("PAINT_POS_PORT", DEFAULT_PORT)
LOG_LEVEL = (_env_string("PAINT_POS_LOG_LEVEL", "INFO") or "INFO").upper()


class Config:
    DATABASE_PATH = str(resolve_db_path())
    LOW_STOCK_THRESHOLD = _env_int("PAINT_POS_LOW_STOCK_THRESHOLD", DEFAULT_LOW_STOCK_THRESHOLD)
    ALLOW_OVERSELL = _env_flag("PAINT_POS_ALLOW_OVERSELL", False)
    DEBUG = False
    TESTING = False


class DevelopmentConfig(Config):
    DEBUG = True


class ProductionConfig(Config):
    DEBUG = False


class TestingConfig(Config):
    TESTING = True
    ALLOW_OVERSELL = False
