"""Timezone utilities for the clinic's local calendar"""
import os
from datetime import date, datetime, time
import pytz

# Clinic timezone (handles CET/CEST automatically)
CLINIC_TZ = pytz.timezone(os.getenv("CLINIC_TIMEZONE", "Europe/Madrid"))


def as_utc(dt: datetime | None) -> datetime | None:
    """
    Return an aware UTC datetime.

    Naive datetimes are assumed to already be in UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return pytz.utc.localize(dt)
    return dt.astimezone(pytz.utc)


def convert_to_clinic_time(dt: datetime | None) -> datetime | None:
    """
    Convert a UTC datetime to the clinic's local time for API display.

    Args:
        dt: Naive datetime assumed to be in UTC, aware datetime, or None

    Returns:
        Naive datetime in the clinic timezone, or None if input is None
    """
    if dt is None:
        return None
    local_dt = as_utc(dt).astimezone(CLINIC_TZ)
    return local_dt.replace(tzinfo=None)


def start_of_day(day: date) -> datetime:
    """First instant of a clinic calendar day, as aware UTC."""
    return CLINIC_TZ.localize(datetime.combine(day, time.min)).astimezone(pytz.utc)


def end_of_day(day: date) -> datetime:
    """Last instant of a clinic calendar day, as aware UTC."""
    return CLINIC_TZ.localize(datetime.combine(day, time.max)).astimezone(pytz.utc)


def utc_now() -> datetime:
    return datetime.now(pytz.utc)
