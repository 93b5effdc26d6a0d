from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

_SECONDS_PER_DAY = 86400.0


def as_utc(ts: datetime) -> datetime:
    # Naive timestamps are taken to be UTC.
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def days_since(ts: Optional[datetime], now: Optional[datetime] = None) -> Optional[float]:
    if ts is None:
        return None
    now = as_utc(now) if now is not None else datetime.now(timezone.utc)
    return (now - as_utc(ts)).total_seconds() / _SECONDS_PER_DAY
