"""
Datetime utilities
Provides timezone-aware datetime functions to replace deprecated datetime.utcnow()
"""
from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """
    Get current UTC time (replacement for deprecated datetime.utcnow())

    Returns:
        datetime: Current UTC time with timezone awareness
    """
    return datetime.now(timezone.utc)


def utc_now_naive() -> datetime:
    """
    Current UTC time without tzinfo, for comparisons with columns that
    come back naive (SQLite drops the offset)
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def local_today() -> date:
    """Today's calendar date in server local time"""
    return date.today()
