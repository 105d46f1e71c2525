from __future__ import annotations

import itertools
import threading
from dataclasses import replace
from datetime import datetime, timedelta

from clinic_backend.appointments.services.store import AppointmentRecord, AppointmentStore


def record(appt_id, start: datetime, minutes: int = 30, *, doctor_id=1, patient_id=7,
           service_type=None, status='scheduled') -> AppointmentRecord:
    return AppointmentRecord(
        id=appt_id,
        doctor_id=doctor_id,
        patient_id=patient_id,
        start_time=start,
        end_time=start + timedelta(minutes=minutes),
        service_type=service_type,
        status=status,
    )


class InMemoryAppointmentStore(AppointmentStore):
    """AppointmentStore over a list; records the queries it receives."""

    def __init__(self, appointments=(), fail_with: Exception | None = None):
        self.appointments = list(appointments)
        self.fail_with = fail_with
        self.doctor_queries = []
        self.patient_queries = []
        self.threads = set()
        self._ids = itertools.count(1000)
        self.on_doctor_query = None

    def _enter(self):
        self.threads.add(threading.get_ident())
        if self.fail_with is not None:
            raise self.fail_with

    def query_by_doctor(self, doctor_id, start_date, end_date):
        self.doctor_queries.append((doctor_id, start_date, end_date))
        if self.on_doctor_query is not None:
            self.on_doctor_query()
        self._enter()
        return [
            appt for appt in self.appointments
            if appt.doctor_id == doctor_id
            and not appt.is_cancelled
            and appt.start_time < end_date
            and appt.end_time > start_date
        ]

    def query_by_patient(self, patient_id):
        self.patient_queries.append(patient_id)
        self._enter()
        return [appt for appt in self.appointments if appt.patient_id == patient_id and not appt.is_cancelled]

    def create(self, data):
        appt = AppointmentRecord(id=next(self._ids), **data)
        self.appointments.append(appt)
        return appt

    def update(self, appointment_id, data):
        for index, appt in enumerate(self.appointments):
            if appt.id == appointment_id:
                self.appointments[index] = replace(appt, **data)
                return self.appointments[index]
        raise KeyError(appointment_id)

    def delete(self, appointment_id):
        self.appointments = [appt for appt in self.appointments if appt.id != appointment_id]
