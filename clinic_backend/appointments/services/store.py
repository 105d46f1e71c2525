"""
Appointment Store

The scheduling services never touch the ORM directly. They read appointments
through an ``AppointmentStore``; ``DjangoAppointmentStore`` is the ORM-backed
implementation used by the views and management commands.

Architecture Rules:
- All DB access uses .using('default')
- patient_id is always an integer reference, never a FK
- Database failures surface as UpstreamUnavailable
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any
from zoneinfo import ZoneInfo

from django.db import DatabaseError

from clinic_backend.appointments.exceptions import InvalidArgument, UpstreamUnavailable
from clinic_backend.appointments.models import Appointment, AppointmentType, PracticeHours

from .slots import DayHours
from .timeutils import local_instant, resolve_zone

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppointmentRecord:
    """Read-only view of a booked appointment as seen by the scheduling core."""
    id: Any
    doctor_id: Any
    patient_id: Any
    start_time: datetime
    end_time: datetime
    service_type: str | None = None
    status: str = Appointment.STATUS_SCHEDULED

    @property
    def is_cancelled(self) -> bool:
        return self.status == Appointment.STATUS_CANCELLED

    @classmethod
    def from_model(cls, appt: Appointment) -> 'AppointmentRecord':
        type_obj = appt.type
        return cls(
            id=appt.id,
            doctor_id=appt.doctor_id,
            patient_id=appt.patient_id,
            start_time=appt.start_time,
            end_time=appt.end_time,
            service_type=type_obj.name if type_obj is not None else None,
            status=appt.status,
        )


class AppointmentStore(ABC):
    """External appointment persistence consumed by the scheduling core."""

    @abstractmethod
    def query_by_doctor(self, doctor_id, start_date: datetime, end_date: datetime) -> list[AppointmentRecord]:
        """Active appointments of ``doctor_id`` overlapping ``[start_date, end_date)``."""

    @abstractmethod
    def query_by_patient(self, patient_id) -> list[AppointmentRecord]:
        """The patient's full appointment history."""

    @abstractmethod
    def create(self, data: dict) -> AppointmentRecord:
        ...

    @abstractmethod
    def update(self, appointment_id, data: dict) -> AppointmentRecord:
        ...

    @abstractmethod
    def delete(self, appointment_id) -> None:
        ...


class DjangoAppointmentStore(AppointmentStore):
    """``AppointmentStore`` backed by the ``Appointment`` model."""

    WRITABLE_FIELDS = ('patient_id', 'doctor_id', 'type_id', 'start_time', 'end_time', 'status', 'notes')

    def __init__(self, *, using: str = 'default', include_cancelled_history: bool = False):
        self.using = using
        self.include_cancelled_history = include_cancelled_history

    def _queryset(self):
        return Appointment.objects.using(self.using).select_related('type')

    def query_by_doctor(self, doctor_id, start_date, end_date):
        try:
            rows = list(
                self._queryset()
                .filter(
                    doctor_id=doctor_id,
                    start_time__lt=end_date,
                    end_time__gt=start_date,
                )
                .exclude(status=Appointment.STATUS_CANCELLED)
                .order_by('start_time', 'id')
            )
        except DatabaseError as exc:
            logger.warning('Doctor appointment lookup failed for doctor_id=%s: %s', doctor_id, exc)
            raise UpstreamUnavailable('Could not load the doctor\'s appointments') from exc
        return [AppointmentRecord.from_model(appt) for appt in rows]

    def query_by_patient(self, patient_id):
        try:
            qs = self._queryset().filter(patient_id=patient_id)
            if not self.include_cancelled_history:
                qs = qs.exclude(status=Appointment.STATUS_CANCELLED)
            rows = list(qs.order_by('start_time', 'id'))
        except DatabaseError as exc:
            logger.warning('Patient history lookup failed for patient_id=%s: %s', patient_id, exc)
            raise UpstreamUnavailable('Could not load the patient\'s appointment history') from exc
        return [AppointmentRecord.from_model(appt) for appt in rows]

    def _clean(self, data: dict) -> dict:
        unknown = sorted(set(data) - set(self.WRITABLE_FIELDS))
        if unknown:
            raise InvalidArgument(f'Unknown appointment field(s): {", ".join(unknown)}')
        return dict(data)

    def create(self, data):
        values = self._clean(data)
        try:
            appt = Appointment.objects.using(self.using).create(**values)
        except DatabaseError as exc:
            raise UpstreamUnavailable('Could not create the appointment') from exc
        return AppointmentRecord.from_model(appt)

    def update(self, appointment_id, data):
        values = self._clean(data)
        try:
            updated = Appointment.objects.using(self.using).filter(id=appointment_id).update(**values)
            if not updated:
                raise InvalidArgument(f'Appointment {appointment_id} not found', field='id')
            appt = self._queryset().get(id=appointment_id)
        except DatabaseError as exc:
            raise UpstreamUnavailable('Could not update the appointment') from exc
        return AppointmentRecord.from_model(appt)

    def delete(self, appointment_id):
        try:
            Appointment.objects.using(self.using).filter(id=appointment_id).delete()
        except DatabaseError as exc:
            raise UpstreamUnavailable('Could not delete the appointment') from exc


def business_hours_from_practice_hours(*, using: str = 'default') -> dict[int, DayHours]:
    """Load clinic business hours from ``PracticeHours``.

    Inactive rows mark their weekday closed; weekdays without a row stay absent
    (and are therefore closed as well).
    """
    try:
        rows = list(PracticeHours.objects.using(using).order_by('weekday', 'id'))
    except DatabaseError as exc:
        raise UpstreamUnavailable('Could not load practice hours') from exc

    hours: dict[int, DayHours] = {}
    for row in rows:
        if not row.active:
            hours[row.weekday] = DayHours(closed=True)
        else:
            hours[row.weekday] = DayHours(open=row.start_time, close=row.end_time)
    return hours


def resolve_type_duration(type_id: int | None, *, using: str = 'default') -> tuple[AppointmentType | None, int | None]:
    if type_id is None:
        return None, None
    type_obj = AppointmentType.objects.using(using).filter(id=type_id, active=True).first()
    if type_obj is None:
        raise InvalidArgument('type_id not found or inactive', field='type_id')
    return type_obj, type_obj.duration_minutes


def local_day_bounds(day: date, time_zone: str | ZoneInfo, *, days: int = 1) -> tuple[datetime, datetime]:
    """Absolute ``[start, end)`` of ``days`` local calendar days starting at ``day``."""
    tz = resolve_zone(time_zone)
    start = local_instant(day, time.min, tz)
    end = local_instant(day + timedelta(days=days), time.min, tz)
    return start, end
