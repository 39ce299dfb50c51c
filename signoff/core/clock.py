"""Reference-timezone helpers for the API layer.

The eligibility engine never reads the clock; callers compute ``today`` here
and pass it in.
"""

from __future__ import annotations

from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo

from signoff.core.config import get_settings


def reference_zone() -> ZoneInfo:
    return ZoneInfo(get_settings().timezone)


def local_today() -> date:
    """Return the current calendar date in the configured timezone."""
    return datetime.now(reference_zone()).date()


def utc_now() -> datetime:
    return datetime.now(UTC)
