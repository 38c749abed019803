# utils/validators.py

def non_empty(text: str) -> bool:
    """
    True if `text` is not None/empty after stripping whitespace.
    """
    return bool(text and str(text).strip())


def is_positive_int(x) -> bool:
    """True iff x is an int (or integral string) greater than zero."""
    if isinstance(x, bool):
        return False
    if isinstance(x, int):
        return x > 0
    if isinstance(x, float):
        return x.is_integer() and x > 0
    try:
        return int(str(x).strip()) > 0
    except (TypeError, ValueError):
        return False
