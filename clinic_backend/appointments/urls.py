from django.urls import path

from .views import AppointmentSuggestView, ConflictCheckView


app_name = 'appointments'

urlpatterns = [
	path('appointments/suggest/', AppointmentSuggestView.as_view(), name='suggest'),
	path('appointments/check-conflict/', ConflictCheckView.as_view(), name='check_conflict'),
]
