"""
date_time_helper.py

Helpers for date/time values used by signing and audit logging.

All features should use ONLY these helpers for date/time logic.
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]

_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def utc_now() -> datetime:
    """Current UTC time, second precision."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def utc_now_iso() -> str:
    """
    Returns the current UTC time as an ISO8601 string (YYYY-MM-DDTHH:MM:SS+00:00).
    Used for logging and DB storage.
    """
    return utc_now().isoformat()


def local_now() -> datetime:
    """Current local wall-clock time (what a signer sees on the date stamp)."""
    return datetime.now().astimezone()


def format_long_date(value: date) -> str:
    """
    Long human date, e.g. "January 16, 2026".

    Month names are spelled out here instead of using ``%B`` so the result does
    not depend on the process locale.
    """
    return f"{_MONTHS[value.month - 1]} {value.day}, {value.year}"


def to_iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.replace(microsecond=0).isoformat()


def parse_iso(txt: Optional[str]) -> Optional[datetime]:
    if not txt:
        return None
    return datetime.fromisoformat(txt)
