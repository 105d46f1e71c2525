"""Clinic backend URL configuration.

API routes:
    /api/appointments/suggest/        - ranked slot suggestions
    /api/appointments/check-conflict/ - conflict check for a proposed interval
"""

from django.contrib import admin
from django.http import HttpResponse
from django.urls import include, path


def root(request):
    """Plain-text health check."""
    return HttpResponse("Clinic backend is running.")


urlpatterns = [
    path("", root, name="root"),
    path("admin/", admin.site.urls),
    path("api/", include("clinic_backend.appointments.urls")),
]
