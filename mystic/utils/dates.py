# mystic/utils/dates.py
from __future__ import annotations

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """
    Naive UTC "now": every timestamp column in the app is naive UTC.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def date_key(d: date) -> str:
    # YYYY-MM-DD
    return d.isoformat()
