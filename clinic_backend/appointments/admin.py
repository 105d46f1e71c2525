"""
Appointments App - Admin registration for the scheduling models.
"""

from django.contrib import admin
from django.utils.html import format_html

from .models import Appointment, AppointmentType, PracticeHours


STATUS_COLORS = {
    Appointment.STATUS_SCHEDULED: "#1A73E8",
    Appointment.STATUS_CONFIRMED: "#34A853",
    Appointment.STATUS_CANCELLED: "#EA4335",
    Appointment.STATUS_COMPLETED: "#9AA0A6",
}


def _active_badge(active):
    if active:
        return format_html('<span style="color: #34A853;">{}</span>', "active")
    return format_html('<span style="color: #EA4335;">{}</span>', "inactive")


@admin.register(AppointmentType)
class AppointmentTypeAdmin(admin.ModelAdmin):
    list_display = ("name", "duration_minutes", "color_preview", "active_badge", "created_at")
    list_filter = ("active",)
    search_fields = ("name",)
    ordering = ("name",)
    readonly_fields = ("id", "created_at", "updated_at")

    def color_preview(self, obj):
        if not obj.color:
            return "-"
        return format_html(
            '<span style="display: inline-block; width: 14px; height: 14px; background: {};"></span> {}',
            obj.color, obj.color,
        )
    color_preview.short_description = "Color"

    def active_badge(self, obj):
        return _active_badge(obj.active)
    active_badge.short_description = "Status"


@admin.register(PracticeHours)
class PracticeHoursAdmin(admin.ModelAdmin):
    """Clinic opening hours, one row per weekday."""

    WEEKDAY_NAMES = {
        0: "Monday", 1: "Tuesday", 2: "Wednesday", 3: "Thursday",
        4: "Friday", 5: "Saturday", 6: "Sunday",
    }

    list_display = ("weekday_display", "time_range", "active_badge")
    list_filter = ("active",)
    ordering = ("weekday",)
    readonly_fields = ("id", "created_at", "updated_at")

    def weekday_display(self, obj):
        return self.WEEKDAY_NAMES.get(obj.weekday, f"Day {obj.weekday}")
    weekday_display.short_description = "Weekday"

    def time_range(self, obj):
        return format_html(
            '<span style="font-family: monospace;">{} - {}</span>',
            obj.start_time.strftime("%H:%M"),
            obj.end_time.strftime("%H:%M"),
        )
    time_range.short_description = "Opening hours"

    def active_badge(self, obj):
        return _active_badge(obj.active)
    active_badge.short_description = "Status"


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ("id", "patient_id", "doctor", "type", "start_time", "end_time", "status_badge")
    list_filter = ("status", "doctor", "type")
    search_fields = ("patient_id", "doctor__username", "notes")
    ordering = ("-start_time",)
    date_hierarchy = "start_time"
    list_per_page = 50
    readonly_fields = ("id", "created_at", "updated_at")

    fieldsets = (
        ("Patient & doctor", {
            "fields": ("patient_id", "doctor", "type")
        }),
        ("Appointment", {
            "fields": ("start_time", "end_time", "status")
        }),
        ("Notes", {
            "fields": ("notes",),
            "classes": ("collapse",)
        }),
        ("System", {
            "fields": ("id", "created_at", "updated_at"),
            "classes": ("collapse",)
        }),
    )

    def status_badge(self, obj):
        return format_html(
            '<span style="color: {}; font-weight: 600;">{}</span>',
            STATUS_COLORS.get(obj.status, "#9AA0A6"), obj.get_status_display(),
        )
    status_badge.short_description = "Status"
