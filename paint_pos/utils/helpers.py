# utils/helpers.py
from datetime import datetime
import uuid
from typing import Optional

from paint_pos.utils.loggers import get_logger

_log = get_logger("paint_pos.helpers")


def now_iso() -> str:
    """Local timestamp with microseconds; sorts lexically in insertion order."""
    return datetime.now().isoformat(timespec="microseconds")


def new_id() -> str:
    return str(uuid.uuid4())


def fmt_ddmmyyyy(value: Optional[str]) -> Optional[str]:
    """
    Render an ISO date/timestamp as DD-MM-YYYY for report payloads.
    Returns None for empty input; unparseable input is returned unchanged.
    """
    if not value:
        return None
    try:
        d = datetime.fromisoformat(str(value))
    except ValueError:
        _log.debug("fmt_ddmmyyyy: could not parse %r", value)
        return str(value)
    return d.strftime("%d-%m-%Y")
