"""
Pickup-time conversion.

The booking form posts a wall-clock ``datetime-local`` value together with
the browser's IANA zone.  We interpret the value in that zone and persist
UTC; emails render it back in a zone with its abbreviation.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


class UnknownTimezone(ValueError):
    pass


def resolve_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise UnknownTimezone(f"Unknown timezone: {name}") from exc


def to_utc(value: datetime, tz_name: Optional[str], fallback_tz: str) -> datetime:
    """Interpret naive *value* in *tz_name* (or *fallback_tz*) and return UTC."""
    zone = resolve_zone(tz_name or fallback_tz)
    if value.tzinfo is None:
        value = value.replace(tzinfo=zone)
    return value.astimezone(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from the database."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def format_pickup_time(value: datetime, tz_name: str) -> str:
    """``October 19, 2026 at 3:30 PM CDT``"""
    local = as_utc(value).astimezone(resolve_zone(tz_name))
    hour = local.strftime("%I").lstrip("0")
    return (
        f"{local.strftime('%B')} {local.day}, {local.year} at "
        f"{hour}:{local.strftime('%M %p')} {local.tzname()}"
    )
