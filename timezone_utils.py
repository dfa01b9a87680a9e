"""
Application-timezone utilities for the EcoNova backend.
Due dates are calendar dates, so "today" must be computed in one agreed timezone
across every service (set APP_TIMEZONE, defaults to UTC).
"""

import datetime
import os
import pytz
from typing import Union, Optional

APP_TZ = pytz.timezone(os.environ.get("APP_TIMEZONE", "UTC"))

def get_current_datetime() -> datetime.datetime:
    """
    Get current datetime in the application timezone.

    Returns:
        datetime.datetime: Current timezone-aware datetime
    """
    return datetime.datetime.now(APP_TZ)

def get_current_date() -> datetime.date:
    """
    Get current calendar date in the application timezone.

    Returns:
        datetime.date: Today's date
    """
    return get_current_datetime().date()

def utc_now_iso() -> str:
    """ISO-8601 UTC timestamp used for createdAt/updatedAt/submittedAt stamps."""
    return datetime.datetime.now(pytz.utc).isoformat()

def convert_to_app_tz(dt: Union[datetime.datetime, datetime.date]) -> datetime.datetime:
    """
    Convert a datetime or date to the application timezone.

    Args:
        dt: datetime or date object to convert. Naive values are assumed to
            already be in the application timezone.

    Returns:
        datetime.datetime: Converted datetime
    """
    if isinstance(dt, datetime.date) and not isinstance(dt, datetime.datetime):
        dt = datetime.datetime.combine(dt, datetime.time.min)

    if dt.tzinfo is None:
        dt = APP_TZ.localize(dt)
    else:
        dt = dt.astimezone(APP_TZ)

    return dt

def parse_iso_date(value: Union[str, datetime.date, None]) -> Optional[datetime.date]:
    """
    Parse an ISO date ("2024-05-01") or ISO datetime string into a date.

    Returns None for empty input and raises ValueError for malformed input.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime.datetime):
        return convert_to_app_tz(value).date()
    if isinstance(value, datetime.date):
        return value
    value = str(value).strip()
    if 'T' in value:
        parsed = datetime.datetime.fromisoformat(value.replace('Z', '+00:00'))
        return convert_to_app_tz(parsed).date()
    return datetime.date.fromisoformat(value)

def format_app_datetime(dt: datetime.datetime, format_str: str = "%Y-%m-%d %H:%M:%S %Z") -> str:
    """
    Format a datetime as a string in the application timezone.

    Args:
        dt: Datetime to format
        format_str: Format string (default: date, time and zone name)

    Returns:
        str: Formatted datetime string
    """
    return convert_to_app_tz(dt).strftime(format_str)

__all__ = [
    'APP_TZ',
    'get_current_datetime',
    'get_current_date',
    'utc_now_iso',
    'convert_to_app_tz',
    'parse_iso_date',
    'format_app_datetime',
]
