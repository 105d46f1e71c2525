"""
Django Management Command: suggest_slots

Print ranked appointment suggestions for a doctor and patient.

Usage:
    python manage.py suggest_slots --doctor-id 1 --patient-id 7 --date 2024-01-15
    python manage.py suggest_slots --doctor-id 1 --patient-id 7 --date 2024-01-15 --time 14:00
    python manage.py suggest_slots --doctor-id 1 --patient-id 7 --date 2024-01-15 --json

Examples:
    # 45 minute slots, best 3, in an explicit zone
    python manage.py suggest_slots --doctor-id 1 --patient-id 7 --date 2024-01-15 \
        --duration 45 --limit 3 --time-zone Asia/Kolkata

    # Load doctor bookings and patient history concurrently
    python manage.py suggest_slots --doctor-id 1 --patient-id 7 --date 2024-01-15 --parallel
"""

import json
from argparse import ArgumentParser
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.db import connections

from clinic_backend.appointments.exceptions import SchedulingError
from clinic_backend.appointments.services.store import DjangoAppointmentStore, business_hours_from_practice_hours
from clinic_backend.appointments.services.suggestions import SuggestionRequest, SuggestionService
from clinic_backend.appointments.services.timeutils import iso_z, resolve_zone, to_local


def _parse_date(value: str):
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise CommandError(f"--date must be in format YYYY-MM-DD, got {value!r}")


def _parse_time(value: str | None):
    if value is None:
        return None
    try:
        return datetime.strptime(value, "%H:%M").time()
    except ValueError:
        raise CommandError(f"--time must be in format HH:MM, got {value!r}")


class WorkerThreadStore(DjangoAppointmentStore):
    """ORM store for reads issued from executor threads.

    Django opens one connection per thread; each read closes the calling
    thread's connections so finished workers do not leave them open.
    """

    def query_by_doctor(self, doctor_id, start_date, end_date):
        try:
            return super().query_by_doctor(doctor_id, start_date, end_date)
        finally:
            connections.close_all()

    def query_by_patient(self, patient_id):
        try:
            return super().query_by_patient(patient_id)
        finally:
            connections.close_all()


class Command(BaseCommand):
    """Print ranked appointment suggestions."""

    help = "Suggest appointment slots for a doctor and patient"

    def add_arguments(self, parser: ArgumentParser) -> None:
        parser.add_argument("--doctor-id", type=int, required=True, help="Doctor (user) id")
        parser.add_argument("--patient-id", type=int, required=True, help="Patient id")
        parser.add_argument("--date", required=True, help="First day of the search window (YYYY-MM-DD)")
        parser.add_argument("--time", default=None, help="Preferred wall-clock time (HH:MM)")
        parser.add_argument(
            "--duration",
            type=int,
            default=None,
            help="Slot length in minutes (default: derived from the patient's history)",
        )
        parser.add_argument("--service-type", default=None, help="Service type used to derive the duration")
        parser.add_argument("--limit", type=int, default=None, help="Number of suggestions to print")
        parser.add_argument(
            "--time-zone",
            default=None,
            help="Clinic time zone (default: settings.CLINIC_TIME_ZONE)",
        )
        parser.add_argument(
            "--parallel",
            action="store_true",
            help="Load doctor bookings and patient history concurrently",
        )
        parser.add_argument(
            "--json",
            action="store_true",
            dest="output_json",
            help="Output results as JSON",
        )

    def handle(self, *args: Any, **options: Any) -> None:
        time_zone = options["time_zone"] or getattr(settings, "CLINIC_TIME_ZONE", settings.TIME_ZONE)

        try:
            request = SuggestionRequest(
                doctor_id=options["doctor_id"],
                patient_id=options["patient_id"],
                preferred_date=_parse_date(options["date"]),
                time_zone=time_zone,
                business_hours=business_hours_from_practice_hours(),
                preferred_time=_parse_time(options["time"]),
                duration_minutes=options["duration"],
                service_type=options["service_type"],
                top_k=options["limit"],
            )
            if options["parallel"]:
                with ThreadPoolExecutor(max_workers=2) as executor:
                    slots = SuggestionService(WorkerThreadStore(), executor=executor).get_suggestions(request)
            else:
                slots = SuggestionService(DjangoAppointmentStore()).get_suggestions(request)
        except SchedulingError as exc:
            raise CommandError(exc.message)

        if options["output_json"]:
            payload = [
                {"start_time": iso_z(slot.start), "end_time": iso_z(slot.end), "score": slot.score}
                for slot in slots
            ]
            self.stdout.write(json.dumps({"suggestions": payload}, indent=2))
            return

        if not slots:
            self.stdout.write(self.style.WARNING("No free slots in the search window."))
            return

        tz = resolve_zone(time_zone)
        for rank, slot in enumerate(slots, start=1):
            local_start = to_local(slot.start, tz)
            local_end = to_local(slot.end, tz)
            self.stdout.write(
                f"{rank}. {local_start:%a %Y-%m-%d %H:%M}-{local_end:%H:%M} ({tz.key})  score={slot.score:.2f}"
            )
