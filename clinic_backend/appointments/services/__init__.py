"""
Appointments Services Module.

This package contains the scheduling core of the appointments app:
- slots: slot generation from business hours
- preferences: patient preference analysis and duration heuristic
- conflicts: conflict detection for bookings and edits
- ranking: slot scoring and ranking
- suggestions: orchestration of the above for one request
- store: the appointment store interface and its ORM implementation
- policy: tunable scheduling constants
"""

from clinic_backend.appointments.services.conflicts import (
    ConflictCheckGate,
    ConflictCheckRequest,
    ConflictResult,
    ConflictService,
    Interval,
    check_conflict,
    validate_appointment_window,
)
from clinic_backend.appointments.services.policy import SchedulingPolicy
from clinic_backend.appointments.services.preferences import (
    PreferenceProfile,
    analyze_preferences,
    optimal_duration,
)
from clinic_backend.appointments.services.ranking import score_and_rank
from clinic_backend.appointments.services.slots import (
    BusinessHours,
    DayHours,
    TimeSlot,
    generate_slots,
    parse_business_hours,
)
from clinic_backend.appointments.services.store import (
    AppointmentRecord,
    AppointmentStore,
    DjangoAppointmentStore,
    business_hours_from_practice_hours,
)
from clinic_backend.appointments.services.suggestions import SuggestionRequest, SuggestionService

__all__ = [
    # Value types
    "AppointmentRecord",
    "BusinessHours",
    "ConflictResult",
    "DayHours",
    "Interval",
    "PreferenceProfile",
    "TimeSlot",
    # Slots
    "generate_slots",
    "parse_business_hours",
    # Preferences
    "analyze_preferences",
    "optimal_duration",
    # Conflicts
    "ConflictCheckGate",
    "ConflictCheckRequest",
    "ConflictService",
    "check_conflict",
    "validate_appointment_window",
    # Ranking
    "score_and_rank",
    # Orchestration
    "SuggestionRequest",
    "SuggestionService",
    # Store
    "AppointmentStore",
    "DjangoAppointmentStore",
    "business_hours_from_practice_hours",
    # Policy
    "SchedulingPolicy",
]
