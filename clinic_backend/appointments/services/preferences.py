"""
Patient preference analysis.

Derives how often a patient historically booked on each weekday and at each
hour. The profile is computed fresh for every suggestion request and reflects
the patient's all-time history.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable
from zoneinfo import ZoneInfo

from .policy import SERVICE_TYPE_DURATIONS, SchedulingPolicy, get_policy
from .store import AppointmentRecord
from .timeutils import require_aware, resolve_zone, to_local


@dataclass(frozen=True)
class PreferenceProfile:
    """Historical distribution of a patient's bookings.

    by_day:  weekday (0=Monday .. 6=Sunday) -> count
    by_hour: hour (0..23) -> count

    Missing keys mean zero weight.
    """
    by_day: dict[int, int] = field(default_factory=dict)
    by_hour: dict[int, int] = field(default_factory=dict)

    def day_weight(self, weekday: int) -> int:
        return self.by_day.get(weekday, 0)

    def hour_weight(self, hour: int) -> int:
        return self.by_hour.get(hour, 0)

    @property
    def is_empty(self) -> bool:
        return not self.by_day and not self.by_hour


def analyze_preferences(
    history: Iterable[AppointmentRecord],
    time_zone: str | ZoneInfo,
) -> PreferenceProfile:
    """Count weekday/hour of every appointment start, in the clinic zone."""
    tz = resolve_zone(time_zone)
    by_day: dict[int, int] = defaultdict(int)
    by_hour: dict[int, int] = defaultdict(int)

    for appt in history:
        local_start = to_local(require_aware(appt.start_time, 'start_time'), tz)
        by_day[local_start.weekday()] += 1
        by_hour[local_start.hour] += 1

    return PreferenceProfile(by_day=dict(by_day), by_hour=dict(by_hour))


def optimal_duration(
    service_type: str | None,
    history: Iterable[AppointmentRecord],
    policy: SchedulingPolicy | None = None,
) -> int:
    """Suggest an appointment length in minutes for ``service_type``.

    Uses the patient's average duration for the same service type, rounded to
    the nearest quarter hour. Without such history, falls back to the default
    for the service type and then to the policy default.
    """
    policy = get_policy(policy)
    rounding = policy.duration_rounding_minutes

    durations = [
        (appt.end_time - appt.start_time).total_seconds() / 60
        for appt in history
        if service_type and appt.service_type == service_type
    ]
    if durations:
        average = sum(durations) / len(durations)
        # half up: 22.5 -> 30
        rounded = int(average / rounding + 0.5) * rounding
        return max(rounded, rounding)

    return SERVICE_TYPE_DURATIONS.get(service_type or '', policy.default_duration_minutes)
