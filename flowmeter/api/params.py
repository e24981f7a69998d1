"""Parsing of query-string parameters shared by meter endpoints."""
from flowmeter.core.exceptions import InvalidWindowError

MAX_WINDOW = 2**32 - 1


def parse_window(raw: str) -> int:
    """Parse a base-10 unsigned 32-bit window length."""

    if not (raw.isascii() and raw.isdigit()):
        raise InvalidWindowError(f"window [{raw}] cannot be converted to uint")
    window = int(raw)
    if window > MAX_WINDOW:
        raise InvalidWindowError(f"window [{raw}] is out of range")
    return window
