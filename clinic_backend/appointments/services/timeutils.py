"""Helpers that keep absolute instants and clinic wall-clock time apart."""

from __future__ import annotations

from datetime import date, datetime, time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from django.utils import timezone

from clinic_backend.appointments.exceptions import InvalidArgument


def resolve_zone(time_zone: str | ZoneInfo) -> ZoneInfo:
    if isinstance(time_zone, ZoneInfo):
        return time_zone
    if not time_zone:
        raise InvalidArgument('time_zone is required', field='time_zone')
    try:
        return ZoneInfo(str(time_zone))
    except (ZoneInfoNotFoundError, ValueError):
        raise InvalidArgument(f'Unknown time zone: {time_zone!r}', field='time_zone')


def require_aware(dt: datetime, field: str) -> datetime:
    """Reject naive datetimes; scheduling math only runs on absolute instants."""
    if not isinstance(dt, datetime):
        raise InvalidArgument(f'{field} must be a datetime', field=field)
    if timezone.is_naive(dt):
        raise InvalidArgument(f'{field} must be timezone-aware', field=field)
    return dt


def to_local(dt: datetime, tz: ZoneInfo) -> datetime:
    return timezone.localtime(dt, tz)


def local_instant(day: date, wall_clock: time, tz: ZoneInfo) -> datetime:
    """Absolute instant of a wall-clock time on ``day`` in ``tz``."""
    return timezone.make_aware(datetime.combine(day, wall_clock), tz)


def iso_z(dt: datetime) -> str:
    value = dt.isoformat()
    return value.replace('+00:00', 'Z')
