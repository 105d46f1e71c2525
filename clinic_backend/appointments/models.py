"""Domain models for appointment scheduling.

This module contains the *managed* entities read by the scheduling services.

Patient note:

- Patient master data is owned by another system.
- Therefore ``Appointment`` stores an integer ``patient_id`` instead of a
	ForeignKey to a patient model.

Architectural note:

- All ORM access for these models should use the ``default`` database alias.
- The scheduling core never queries these models directly; it goes through
	``services.store.DjangoAppointmentStore``.
"""

from django.conf import settings
from django.db import models


class AppointmentType(models.Model):
	"""Configurable service type (checkup, cleaning, ...).

	Used for:
	- UI display (name/color)
	- Optional default duration (`duration_minutes`)
	- Enabling/disabling types without deleting historical data (`active`)
	"""
	name = models.CharField(max_length=100)
	color = models.CharField(max_length=7, blank=True, null=True, default="#2E8B57")
	duration_minutes = models.IntegerField(blank=True, null=True)
	active = models.BooleanField(default=True)
	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	class Meta:
		ordering = ["name", "id"]

	def __str__(self) -> str:
		return self.name


class PracticeHours(models.Model):
	"""Clinic-wide opening hours for one weekday.

	Times are wall-clock times in ``settings.CLINIC_TIME_ZONE``.
	An inactive row marks the weekday as closed; a weekday without a row is
	closed as well.
	"""
	weekday = models.IntegerField(unique=True)  # 0=Monday ... 6=Sunday
	start_time = models.TimeField()
	end_time = models.TimeField()
	active = models.BooleanField(default=True)
	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	class Meta:
		ordering = ["weekday", "id"]
		verbose_name_plural = "practice hours"

	def __str__(self) -> str:
		return f"PracticeHours weekday={self.weekday} {self.start_time}-{self.end_time}"


class Appointment(models.Model):
	"""A booked appointment.

	Technical notes:
	- ``start_time``/``end_time`` are stored as absolute instants (USE_TZ=True).
	- ``patient_id`` references external patient data and is not a FK.
	- Cancelled appointments stay in the table for history but never block a
	  doctor's calendar.
	"""
	STATUS_SCHEDULED = 'scheduled'
	STATUS_CONFIRMED = 'confirmed'
	STATUS_CANCELLED = 'cancelled'
	STATUS_COMPLETED = 'completed'

	STATUS_CHOICES = (
		(STATUS_SCHEDULED, STATUS_SCHEDULED),
		(STATUS_CONFIRMED, STATUS_CONFIRMED),
		(STATUS_CANCELLED, STATUS_CANCELLED),
		(STATUS_COMPLETED, STATUS_COMPLETED),
	)

	id = models.AutoField(primary_key=True)
	patient_id = models.IntegerField(db_index=True)
	type = models.ForeignKey(
		AppointmentType,
		null=True,
		blank=True,
		on_delete=models.SET_NULL,
	)
	doctor = models.ForeignKey(
		settings.AUTH_USER_MODEL,
		on_delete=models.PROTECT,
		related_name='appointments',
	)
	start_time = models.DateTimeField()
	end_time = models.DateTimeField()
	status = models.CharField(
		max_length=20,
		choices=STATUS_CHOICES,
		default=STATUS_SCHEDULED,
	)
	notes = models.TextField(blank=True, null=True)
	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	class Meta:
		ordering = ['-start_time', '-id']
		indexes = [
			models.Index(fields=['doctor', 'start_time'], name='appt_doctor_start_idx'),
		]

	def __str__(self) -> str:
		return f"Appointment #{self.id} (patient_id={self.patient_id})"
