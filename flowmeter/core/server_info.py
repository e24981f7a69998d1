"""Server metadata helpers used by the HTTP API."""
from __future__ import annotations

import time
from datetime import datetime, timezone


SERVER_START_TIME = time.time()
SERVER_START_DATETIME = datetime.fromtimestamp(SERVER_START_TIME, timezone.utc)


def get_server_start_time() -> datetime:
    """Return the UTC timestamp when the server started."""

    return SERVER_START_DATETIME


def get_uptime_seconds() -> float:
    return time.time() - SERVER_START_TIME
