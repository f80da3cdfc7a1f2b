"""Shared utilities used across the scheduling engine."""

import math
import re
from datetime import date, datetime, time
from typing import Union

EARTH_RADIUS_MILES = 3959.0


def normalize_address(value: str) -> str:
    """Normalize an address for same-place comparison.

    Examples:
        >>> normalize_address("  42 Oak Ave,  Richmond ")
        '42 oak ave, richmond'
    """
    return re.sub(r"\s+", " ", value.strip().lower())


def parse_iso_date(value: Union[str, date]) -> date:
    """Parse a YYYY-MM-DD string. ``date`` instances pass through."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(value.strip(), "%Y-%m-%d").date()


def parse_clock_time(value: Union[str, time]) -> time:
    """Parse an HH:MM string. ``time`` instances pass through."""
    if isinstance(value, time):
        return value
    return datetime.strptime(value.strip(), "%H:%M").time()


def to_minutes(value: time) -> int:
    """Minutes since midnight for a clock time."""
    return value.hour * 60 + value.minute


def as_local_naive(moment: datetime) -> datetime:
    """Convert an aware datetime to naive local wall-clock time; naive input is returned as is."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone().replace(tzinfo=None)


def format_minutes(minutes: int) -> str:
    """Format minutes since midnight as HH:MM.

    Examples:
        >>> format_minutes(630)
        '10:30'
        >>> format_minutes(1440)
        '24:00'
    """
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def calculate_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in miles between two coordinates."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
