"""
Conflict Detection Service

Decides whether a proposed appointment interval collides with a doctor's
existing bookings. Two intervals conflict when they overlap or when the gap
between them is shorter than the policy buffer.

All comparisons run on absolute instants; the clinic zone is irrelevant here.
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Hashable, Iterable

from django.utils import timezone

from clinic_backend.appointments.exceptions import ConflictCheckUnavailable, InvalidArgument

from .policy import SchedulingPolicy, get_policy
from .store import AppointmentRecord, AppointmentStore
from .timeutils import iso_z, require_aware

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Interval:
    start: datetime
    end: datetime

    def __post_init__(self):
        require_aware(self.start, 'start_time')
        require_aware(self.end, 'end_time')
        if self.start >= self.end:
            raise InvalidArgument('end_time must be after start_time', field='end_time')


@dataclass(frozen=True)
class ConflictResult:
    conflict: bool
    message: str | None = None
    appointment_id: Any = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {'conflict': self.conflict}
        if self.message:
            result['message'] = self.message
        if self.appointment_id is not None:
            result['appointment_id'] = self.appointment_id
        return result


NO_CONFLICT = ConflictResult(conflict=False)


def gap_between(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> timedelta:
    """Signed gap between two intervals; negative when they overlap."""
    return max(b_start - a_end, a_start - b_end)


def check_conflict(
    proposed: Interval,
    doctor_id,
    existing: Iterable[AppointmentRecord],
    exclude_appointment_id=None,
    policy: SchedulingPolicy | None = None,
) -> ConflictResult:
    """
    Check ``proposed`` against the doctor's existing appointments.

    Args:
        proposed: interval to validate
        doctor_id: doctor the interval is proposed for; other doctors' rows are ignored
        existing: candidate appointments (usually the doctor's bookings around the interval)
        exclude_appointment_id: the appointment being edited, never compared with itself
        policy: scheduling policy (buffer)

    Returns:
        ConflictResult for the earliest violating appointment, or NO_CONFLICT.
    """
    policy = get_policy(policy)
    buffer = policy.conflict_buffer

    candidates = sorted(
        (
            appt for appt in existing
            if appt.doctor_id == doctor_id
            and not appt.is_cancelled
            and (exclude_appointment_id is None or appt.id != exclude_appointment_id)
        ),
        key=lambda appt: (appt.start_time, str(appt.id)),
    )

    for appt in candidates:
        if proposed.start < appt.end_time and appt.start_time < proposed.end:
            return ConflictResult(
                conflict=True,
                message=(
                    f'Doctor has an overlapping appointment #{appt.id} '
                    f'({iso_z(appt.start_time)} to {iso_z(appt.end_time)})'
                ),
                appointment_id=appt.id,
            )
        if gap_between(proposed.start, proposed.end, appt.start_time, appt.end_time) < buffer:
            return ConflictResult(
                conflict=True,
                message=(
                    f'Doctor has appointment #{appt.id} within '
                    f'{policy.conflict_buffer_minutes} minutes of the requested time'
                ),
                appointment_id=appt.id,
            )

    return NO_CONFLICT


def validate_appointment_window(
    start_time: datetime,
    end_time: datetime,
    *,
    now: datetime | None = None,
    policy: SchedulingPolicy | None = None,
) -> Interval:
    """
    Validate a requested booking interval before it is stored.

    Raises:
        InvalidArgument: end before start, start in the past, or longer than
            the policy's maximum appointment duration.
    """
    policy = get_policy(policy)
    interval = Interval(start_time, end_time)
    now = now or timezone.now()

    if interval.start < now:
        raise InvalidArgument('Cannot create appointments in the past', field='start_time')
    if interval.end - interval.start > policy.max_appointment_duration:
        raise InvalidArgument(
            f'Appointment duration cannot exceed {policy.max_appointment_minutes} minutes',
            field='end_time',
        )
    return interval


@dataclass(frozen=True)
class ConflictCheckRequest:
    doctor_id: Any
    start_time: datetime
    end_time: datetime
    exclude_appointment_id: Any = None


class ConflictCheckGate:
    """Latest-wins bookkeeping for conflict checks issued from one form.

    Every ``begin`` for a form key supersedes the checks started before it.
    Tokens are unique across all keys, so a key dropped by ``finish`` and
    reused later never revives an older in-flight check.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._tokens = itertools.count(1)
        self._latest: dict[Hashable, int] = {}

    def begin(self, form_key: Hashable) -> int:
        with self._lock:
            token = next(self._tokens)
            self._latest[form_key] = token
            return token

    def is_current(self, form_key: Hashable, token: int) -> bool:
        with self._lock:
            return self._latest.get(form_key) == token

    def finish(self, form_key: Hashable, token: int) -> bool:
        """Release ``form_key`` if ``token`` is still its latest check.

        Returns False when a newer check superseded ``token``; the key then
        stays with the newer check.
        """
        with self._lock:
            if self._latest.get(form_key) != token:
                return False
            del self._latest[form_key]
            return True

    def __len__(self) -> int:
        """Number of form keys with a check in flight."""
        with self._lock:
            return len(self._latest)


class ConflictService:
    """Runs conflict checks against an ``AppointmentStore``."""

    def __init__(
        self,
        store: AppointmentStore,
        policy: SchedulingPolicy | None = None,
        gate: ConflictCheckGate | None = None,
    ):
        self.store = store
        self.policy = get_policy(policy)
        self.gate = gate if gate is not None else ConflictCheckGate()

    def check(self, request: ConflictCheckRequest) -> ConflictResult:
        """
        Fetch the doctor's bookings around the interval and check them.

        Raises:
            InvalidArgument: malformed interval
            ConflictCheckUnavailable: the store could not be queried
        """
        proposed = Interval(request.start_time, request.end_time)
        buffer = self.policy.conflict_buffer

        try:
            existing = self.store.query_by_doctor(
                request.doctor_id,
                proposed.start - buffer,
                proposed.end + buffer,
            )
        except InvalidArgument:
            raise
        except Exception as exc:
            logger.warning(
                'Conflict check for doctor_id=%s could not load appointments: %s',
                request.doctor_id, exc,
            )
            raise ConflictCheckUnavailable('Could not verify the doctor\'s availability') from exc

        result = check_conflict(
            proposed,
            request.doctor_id,
            existing,
            exclude_appointment_id=request.exclude_appointment_id,
            policy=self.policy,
        )
        logger.debug(
            'Conflict check doctor_id=%s %s-%s -> %s',
            request.doctor_id, iso_z(proposed.start), iso_z(proposed.end), result.conflict,
        )
        return result

    def check_for_form(self, form_key: Hashable, request: ConflictCheckRequest) -> ConflictResult | None:
        """
        Check on behalf of a form instance whose input may change mid-flight.

        Returns ``None`` when a newer check for ``form_key`` started while this
        one ran; the stale result (or stale failure) is discarded.
        """
        token = self.gate.begin(form_key)
        try:
            result = self.check(request)
        except (InvalidArgument, ConflictCheckUnavailable):
            if not self.gate.finish(form_key, token):
                logger.debug('Discarding failed stale conflict check for form %r', form_key)
                return None
            raise
        if not self.gate.finish(form_key, token):
            logger.debug('Discarding stale conflict check for form %r', form_key)
            return None
        return result
