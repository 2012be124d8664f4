from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision and 'Z'."""
    return to_utc_z(utcnow())


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Read a stored timestamp (createdAt, startTime, ...) as a UTC-naive datetime.

    Blank values give None. Stored values end in "Z"; an explicit offset is
    converted to UTC and a value without one is taken as UTC already.
    Raises ValueError for anything that is not an ISO-8601 string.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"Expected an ISO-8601 string, got {type(value).__name__}")
    text = value.strip()
    if not text:
        return None
    if text[-1] in "Zz":
        text = text[:-1] + "+00:00"

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """
    Parse a calendar date ("YYYY-MM-DD") or the date part of an ISO datetime.

    Equipment date fields (purchaseDate, nextMaintenanceDate, ...) are stored
    as plain dates by the dashboard but older rows may carry full timestamps.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"Expected an ISO-8601 date string, got {type(value).__name__}")
    s = value.strip()
    if not s:
        return None
    if len(s) == 10:
        return date.fromisoformat(s)
    dt = parse_iso_datetime(s)
    return dt.date() if dt else None


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with millisecond precision and trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc)
    return dt_utc.replace(tzinfo=None).isoformat(timespec="milliseconds") + "Z"
