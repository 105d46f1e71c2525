"""
Slot Generation Service

Generates discrete, bookable time slots from clinic business hours.

Business hours are wall-clock times in the clinic's zone; generated slots are
absolute instants (UTC). Each day's opening time is localized once and the
following slots are laid out with absolute durations, so a DST transition
during opening hours never yields duplicated or overlapping slots.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta, timezone as dt_timezone
from typing import Any, Mapping
from zoneinfo import ZoneInfo

from django.utils.dateparse import parse_time

from clinic_backend.appointments.exceptions import InvalidArgument

from .timeutils import local_instant, require_aware, resolve_zone, to_local

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DayHours:
    """Opening hours of one weekday (clinic-local wall-clock)."""
    open: time | None = None
    close: time | None = None
    closed: bool = False

    def __post_init__(self):
        if self.closed:
            return
        if self.open is None or self.close is None:
            raise InvalidArgument('open and close are required for an open day', field='business_hours')
        if self.open >= self.close:
            raise InvalidArgument(
                f'open ({self.open}) must be before close ({self.close})',
                field='business_hours',
            )


# weekday (0=Monday .. 6=Sunday) -> DayHours; a missing weekday is closed.
BusinessHours = Mapping[int, DayHours]


@dataclass(frozen=True)
class TimeSlot:
    """A candidate appointment interval. ``score`` is set by the ranker."""
    start: datetime
    end: datetime
    score: float | None = None

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def with_score(self, score: float) -> 'TimeSlot':
        return replace(self, score=score)


def _to_time(value: time | str | None) -> time | None:
    if value is None or isinstance(value, time):
        return value
    parsed = parse_time(str(value))
    if parsed is None:
        raise InvalidArgument(f'Invalid wall-clock time: {value!r}', field='business_hours')
    return parsed


def parse_business_hours(raw: Mapping[Any, Any]) -> dict[int, DayHours]:
    """Build ``BusinessHours`` from plain data.

    Accepts ``{weekday: {"open": "09:00", "close": "17:00", "closed": False}}``
    where weekday is an int or numeric string; ``DayHours`` values pass through.
    """
    result: dict[int, DayHours] = {}
    for key, value in raw.items():
        try:
            weekday = int(key)
        except (TypeError, ValueError):
            raise InvalidArgument(f'Invalid weekday key: {key!r}', field='business_hours')
        if not 0 <= weekday <= 6:
            raise InvalidArgument(f'Weekday must be between 0 and 6, got {weekday}', field='business_hours')

        if isinstance(value, DayHours):
            result[weekday] = value
            continue

        closed = bool(value.get('closed', False))
        result[weekday] = DayHours(
            open=_to_time(value.get('open')),
            close=_to_time(value.get('close')),
            closed=closed,
        )
    return result


def _iter_local_dates(first: date, last: date):
    current = first
    while current <= last:
        yield current
        current += timedelta(days=1)


def generate_slots(
    range_start: datetime,
    range_end: datetime,
    business_hours: BusinessHours,
    time_zone: str | ZoneInfo,
    duration_minutes: int,
) -> list[TimeSlot]:
    """
    Generate consecutive slots of ``duration_minutes`` within business hours.

    Every calendar day touched by ``[range_start, range_end]`` (in
    ``time_zone``) is scanned. Slots start at the day's opening time, never
    end after closing time and are kept only when they lie inside the
    requested instants.

    Returns:
        list[TimeSlot] ordered by start, ``score`` unset.

    Raises:
        InvalidArgument: non-positive duration, unknown zone, naive datetimes
            or ``range_end`` before ``range_start``.
    """
    if duration_minutes is None or duration_minutes <= 0:
        raise InvalidArgument('duration_minutes must be >= 1', field='duration_minutes')
    tz = resolve_zone(time_zone)
    require_aware(range_start, 'range_start')
    require_aware(range_end, 'range_end')
    if range_end < range_start:
        raise InvalidArgument('range_end must not be before range_start', field='range_end')
    if range_end == range_start:
        return []

    window_start = range_start.astimezone(dt_timezone.utc)
    window_end = range_end.astimezone(dt_timezone.utc)
    duration = timedelta(minutes=duration_minutes)

    slots: list[TimeSlot] = []
    first_day = to_local(range_start, tz).date()
    last_day = to_local(range_end, tz).date()

    for day in _iter_local_dates(first_day, last_day):
        hours = business_hours.get(day.weekday())
        if hours is None or hours.closed:
            continue

        opens_at = local_instant(day, hours.open, tz).astimezone(dt_timezone.utc)
        closes_at = local_instant(day, hours.close, tz).astimezone(dt_timezone.utc)

        slot_start = opens_at
        while slot_start + duration <= closes_at:
            slot_end = slot_start + duration
            if slot_start >= window_start and slot_end <= window_end:
                slots.append(TimeSlot(start=slot_start, end=slot_end))
            slot_start = slot_end

    logger.debug(
        'Generated %d slots of %d minutes between %s and %s (%s)',
        len(slots), duration_minutes, range_start.isoformat(), range_end.isoformat(), tz.key,
    )
    return slots
