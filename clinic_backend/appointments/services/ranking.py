"""
Slot scoring and ranking.

Each candidate slot gets an additive score:

- proximity to the caller's preferred hour
- the patient's historical weekday and hour affinity
- a penalty when another booking starts close to the slot
- a bonus for morning slots

Weekday and hour are read in the clinic zone; the near-booking penalty uses
absolute time differences.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Sequence
from zoneinfo import ZoneInfo

from clinic_backend.appointments.exceptions import InvalidArgument

from .policy import SchedulingPolicy, get_policy
from .preferences import PreferenceProfile
from .slots import TimeSlot
from .store import AppointmentRecord
from .timeutils import require_aware, resolve_zone, to_local

logger = logging.getLogger(__name__)


def wrapped_hour_diff(a: int, b: int) -> int:
    """Distance between two hours on a 24h clock (0..12)."""
    diff = abs(a - b) % 24
    return min(diff, 24 - diff)


def score_slot(
    slot: TimeSlot,
    *,
    booked_starts: Sequence[datetime],
    preferences: PreferenceProfile,
    tz: ZoneInfo,
    preferred_hour: int | None,
    policy: SchedulingPolicy,
) -> float:
    local_start = to_local(slot.start, tz)
    hour = local_start.hour
    score = 0.0

    if preferred_hour is not None:
        score += (24 - wrapped_hour_diff(hour, preferred_hour)) * policy.preferred_time_weight

    score += preferences.day_weight(local_start.weekday()) * policy.day_affinity_weight
    score += preferences.hour_weight(hour) * policy.hour_affinity_weight

    window = policy.near_conflict_window
    if any(abs(start - slot.start) < window for start in booked_starts):
        score -= policy.near_conflict_penalty

    if hour < policy.morning_cutoff_hour:
        score += policy.morning_bonus

    return score


def score_and_rank(
    slots: Iterable[TimeSlot],
    existing: Iterable[AppointmentRecord],
    preferences: PreferenceProfile,
    time_zone: str | ZoneInfo,
    preferred_instant: datetime | None = None,
    top_k: int | None = None,
    policy: SchedulingPolicy | None = None,
) -> list[TimeSlot]:
    """
    Score every slot and return the best ``top_k``.

    Returns:
        Scored slots, highest score first; equal scores keep the earlier start
        first. Fewer than ``top_k`` candidates are all returned.

    Raises:
        InvalidArgument: ``top_k`` < 1, unknown zone or naive preferred instant.
    """
    policy = get_policy(policy)
    tz = resolve_zone(time_zone)
    top_k = policy.default_top_k if top_k is None else top_k
    if top_k < 1:
        raise InvalidArgument('top_k must be >= 1', field='top_k')

    preferred_hour = None
    if preferred_instant is not None:
        preferred_hour = to_local(require_aware(preferred_instant, 'preferred_time'), tz).hour

    booked_starts = [appt.start_time for appt in existing if not appt.is_cancelled]

    scored = [
        slot.with_score(
            score_slot(
                slot,
                booked_starts=booked_starts,
                preferences=preferences,
                tz=tz,
                preferred_hour=preferred_hour,
                policy=policy,
            )
        )
        for slot in slots
    ]
    scored.sort(key=lambda s: (-s.score, s.start))

    logger.debug('Ranked %d candidate slots, returning top %d', len(scored), min(top_k, len(scored)))
    return scored[:top_k]
