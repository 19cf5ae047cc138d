"""Timezone-aware clock utilities.

All timestamps in buswatch MUST be UTC-aware.  This module is the single
source of "now" so tests can monkey-patch it trivially.  Civil-time hours
(rush windows) are derived from an explicit IANA timezone, never from a
locale-formatted string.
"""

from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def local_hour(moment: datetime, tz_name: str) -> int:
    """Hour of day (0-23) of *moment* in the civil timezone *tz_name*."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(ZoneInfo(tz_name)).hour
