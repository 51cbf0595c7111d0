from __future__ import annotations

import datetime
from collections.abc import Callable

Clock = Callable[[], int]


def utc_now_ts() -> int:
    """Current time as integer Unix seconds (UTC)."""
    return int(datetime.datetime.now(datetime.UTC).timestamp())


def utc_day(ts: int) -> datetime.date:
    return datetime.datetime.fromtimestamp(ts, datetime.UTC).date()
