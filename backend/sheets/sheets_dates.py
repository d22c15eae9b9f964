"""
Date formatting helpers for spreadsheet cells.
"""
from datetime import datetime
from typing import Any, Optional

import pandas as pd

DEFAULT_DISPLAY_TIMEZONE = "Asia/Kolkata"


def parse_timestamp(value: Any) -> Optional[pd.Timestamp]:
    """
    Parse an ISO string, datetime or epoch-milliseconds number into a UTC Timestamp.

    Naive values are read as UTC. Returns None when the value is empty or unparsable.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and not value.strip():
        return None

    try:
        if isinstance(value, (int, float)):
            ts = pd.to_datetime(value, unit="ms", utc=True)
        else:
            ts = pd.to_datetime(value, utc=True)
    except (ValueError, TypeError, OverflowError):
        return None

    if pd.isna(ts):
        return None
    return ts


def format_display_datetime(value: Any, timezone: str = DEFAULT_DISPLAY_TIMEZONE, default: str = "N/A") -> str:
    """
    Format a timestamp the way en-IN locales display it: ``15/3/2024, 4:00:00 pm``.

    Args:
        value: Raw timestamp from the registration payload
        timezone: IANA zone the spreadsheet is displayed in
        default: Returned for empty or unparsable values
    """
    ts = parse_timestamp(value)
    if ts is None:
        return default

    local = ts.tz_convert(timezone)
    hour = local.hour % 12 or 12
    meridiem = "am" if local.hour < 12 else "pm"
    return (
        f"{local.day}/{local.month}/{local.year}, "
        f"{hour}:{local.minute:02d}:{local.second:02d} {meridiem}"
    )


def format_generated_at(generated_at: Optional[datetime] = None, timezone: str = DEFAULT_DISPLAY_TIMEZONE) -> str:
    """Format the 'Generated:' stamp written on the team and dashboard tabs."""
    if generated_at is None:
        generated_at = pd.Timestamp.now(tz="UTC")
    return format_display_datetime(generated_at, timezone)
