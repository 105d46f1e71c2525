"""
Smart appointment suggestions.

Coordinates the scheduling services for one request:

1. Load the doctor's bookings for the suggestion window and the patient's
   history (optionally in parallel)
2. Derive the patient's preference profile
3. Generate slots from business hours over the same window
4. Score and rank them

Nearby bookings only lower a slot's score. Hard overlap exclusion happens
through the conflict check right before booking.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, wait
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Callable
from zoneinfo import ZoneInfo

from clinic_backend.appointments.exceptions import InvalidArgument, SchedulingError, UpstreamUnavailable

from .policy import SchedulingPolicy, get_policy
from .preferences import analyze_preferences, optimal_duration
from .ranking import score_and_rank
from .slots import BusinessHours, TimeSlot, generate_slots
from .store import AppointmentRecord, AppointmentStore, local_day_bounds
from .timeutils import local_instant, require_aware, resolve_zone, to_local

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SuggestionRequest:
    """Input of ``SuggestionService.get_suggestions``.

    ``preferred_time`` is either an aware datetime (absolute instant) or a
    wall-clock ``time`` on ``preferred_date`` in the clinic zone.
    ``duration_minutes=None`` derives the length from the patient's history
    for ``service_type``.
    """
    doctor_id: Any
    patient_id: Any
    preferred_date: date
    time_zone: str | ZoneInfo
    business_hours: BusinessHours
    preferred_time: datetime | time | None = None
    duration_minutes: int | None = 30
    service_type: str | None = None
    top_k: int | None = None


class SuggestionService:
    """Ranks candidate slots for a doctor/patient pair.

    Stateless apart from its collaborators; one instance may serve concurrent
    requests.
    """

    def __init__(
        self,
        store: AppointmentStore,
        policy: SchedulingPolicy | None = None,
        executor: Executor | None = None,
    ):
        self.store = store
        self.policy = get_policy(policy)
        self.executor = executor

    def _window(self, request: SuggestionRequest, tz: ZoneInfo) -> tuple[datetime, datetime]:
        preferred_date = request.preferred_date
        if isinstance(preferred_date, datetime):
            preferred_date = to_local(require_aware(preferred_date, 'preferred_date'), tz).date()
        if not isinstance(preferred_date, date):
            raise InvalidArgument('preferred_date must be a date', field='preferred_date')
        return local_day_bounds(preferred_date, tz, days=self.policy.suggestion_window_days)

    def _preferred_instant(self, request: SuggestionRequest, window_start: datetime, tz: ZoneInfo) -> datetime | None:
        value = request.preferred_time
        if value is None:
            return None
        if isinstance(value, datetime):
            return require_aware(value, 'preferred_time')
        if isinstance(value, time):
            return local_instant(to_local(window_start, tz).date(), value, tz)
        raise InvalidArgument('preferred_time must be a datetime or a time', field='preferred_time')

    def _call_store(self, what: str, fn: Callable[..., list[AppointmentRecord]], *args) -> list[AppointmentRecord]:
        try:
            return list(fn(*args))
        except SchedulingError:
            raise
        except Exception as exc:
            logger.warning('Loading %s failed: %s', what, exc)
            raise UpstreamUnavailable(f'Could not load {what}') from exc

    def _fetch(
        self,
        request: SuggestionRequest,
        window_start: datetime,
        window_end: datetime,
    ) -> tuple[list[AppointmentRecord], list[AppointmentRecord]]:
        doctor_args = ('doctor appointments', self.store.query_by_doctor, request.doctor_id, window_start, window_end)
        patient_args = ('patient history', self.store.query_by_patient, request.patient_id)

        if self.executor is None:
            return self._call_store(*doctor_args), self._call_store(*patient_args)

        doctor_future = self.executor.submit(self._call_store, *doctor_args)
        patient_future = self.executor.submit(self._call_store, *patient_args)
        wait([doctor_future, patient_future])
        return doctor_future.result(), patient_future.result()

    def get_suggestions(self, request: SuggestionRequest) -> list[TimeSlot]:
        """
        Return the top-ranked slots for ``request``.

        Raises:
            InvalidArgument: malformed request (zone, duration, business hours, top_k)
            UpstreamUnavailable: the store failed; no partial result is returned
        """
        tz = resolve_zone(request.time_zone)
        if request.duration_minutes is not None and request.duration_minutes <= 0:
            raise InvalidArgument('duration_minutes must be >= 1', field='duration_minutes')
        top_k = self.policy.default_top_k if request.top_k is None else request.top_k
        if top_k < 1:
            raise InvalidArgument('top_k must be >= 1', field='top_k')

        window_start, window_end = self._window(request, tz)
        preferred_instant = self._preferred_instant(request, window_start, tz)

        doctor_appointments, history = self._fetch(request, window_start, window_end)

        duration = request.duration_minutes
        if duration is None:
            duration = optimal_duration(request.service_type, history, self.policy)

        preferences = analyze_preferences(history, tz)
        slots = generate_slots(window_start, window_end, request.business_hours, tz, duration)
        ranked = score_and_rank(
            slots,
            doctor_appointments,
            preferences,
            tz,
            preferred_instant=preferred_instant,
            top_k=top_k,
            policy=self.policy,
        )

        logger.info(
            'Suggestions doctor_id=%s patient_id=%s from %s: %d candidates, %d returned',
            request.doctor_id, request.patient_id, to_local(window_start, tz).date().isoformat(), len(slots), len(ranked),
        )
        return ranked
