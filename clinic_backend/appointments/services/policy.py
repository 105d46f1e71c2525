"""
Scheduling policy constants.

Defaults reproduce the clinic's historical behaviour. Every value can be
overridden per deployment through ``settings.SCHEDULING_POLICY``.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from datetime import timedelta
from typing import Any

from django.conf import settings

from clinic_backend.appointments.exceptions import InvalidArgument


# Default durations (minutes) per service type when a patient has no history.
SERVICE_TYPE_DURATIONS = {
    'checkup': 30,
    'cleaning': 60,
    'filling': 45,
    'extraction': 60,
    'root-canal': 90,
}


@dataclass(frozen=True)
class SchedulingPolicy:
    # Conflict detection
    conflict_buffer_minutes: int = 60
    max_appointment_minutes: int = 240

    # Ranking weights
    preferred_time_weight: float = 2.0
    day_affinity_weight: float = 1.5
    hour_affinity_weight: float = 2.0
    near_conflict_window_minutes: int = 60
    near_conflict_penalty: float = 5.0
    morning_bonus: float = 3.0
    morning_cutoff_hour: int = 12

    # Suggestions
    default_top_k: int = 5
    suggestion_window_days: int = 7
    default_duration_minutes: int = 30
    duration_rounding_minutes: int = 15

    @property
    def conflict_buffer(self) -> timedelta:
        return timedelta(minutes=self.conflict_buffer_minutes)

    @property
    def near_conflict_window(self) -> timedelta:
        return timedelta(minutes=self.near_conflict_window_minutes)

    @property
    def max_appointment_duration(self) -> timedelta:
        return timedelta(minutes=self.max_appointment_minutes)

    def with_overrides(self, overrides: dict[str, Any] | None) -> 'SchedulingPolicy':
        if not overrides:
            return self
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise InvalidArgument(
                f'Unknown scheduling policy setting(s): {", ".join(unknown)}',
                field='SCHEDULING_POLICY',
            )
        return replace(self, **overrides)

    @classmethod
    def from_settings(cls) -> 'SchedulingPolicy':
        """Build the policy from ``settings.SCHEDULING_POLICY`` (a dict of overrides)."""
        return cls().with_overrides(getattr(settings, 'SCHEDULING_POLICY', None))


def get_policy(policy: SchedulingPolicy | None = None) -> SchedulingPolicy:
    return policy if policy is not None else SchedulingPolicy.from_settings()
