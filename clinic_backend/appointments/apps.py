"""
Appointments App Configuration
"""

from django.apps import AppConfig


class AppointmentsConfig(AppConfig):
    """App configuration for appointments and slot suggestions."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'clinic_backend.appointments'
    label = 'appointments'
    verbose_name = 'Appointments & Scheduling'
