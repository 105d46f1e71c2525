import logging

from django.contrib.auth import get_user_model

from rest_framework import generics, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .exceptions import ConflictCheckUnavailable, InvalidArgument, UpstreamUnavailable
from .serializers import ConflictCheckQuerySerializer, SuggestionQuerySerializer, TimeSlotSerializer
from .services.conflicts import ConflictCheckGate, ConflictCheckRequest, ConflictService
from .services.policy import SchedulingPolicy
from .services.store import DjangoAppointmentStore, business_hours_from_practice_hours, resolve_type_duration
from .services.suggestions import SuggestionRequest, SuggestionService

logger = logging.getLogger(__name__)

# Shared across requests so that a newer check from the same form supersedes
# the ones still running.
_conflict_gate = ConflictCheckGate()


def resolve_doctor(doctor_id: int):
	User = get_user_model()
	return User.objects.using('default').filter(id=doctor_id).first()


def _doctor_error(doctor_id: int):
	doctor = resolve_doctor(doctor_id)
	if doctor is None:
		return Response({'detail': 'doctor_id not found.', 'field': 'doctor_id'}, status=status.HTTP_400_BAD_REQUEST)
	if not getattr(doctor, 'is_active', True):
		return Response(
			{'detail': 'doctor_id must reference an active doctor.', 'field': 'doctor_id'},
			status=status.HTTP_400_BAD_REQUEST,
		)
	return None


class AppointmentSuggestView(generics.GenericAPIView):
	"""Ranked appointment suggestions for a doctor and patient.

	GET /api/appointments/suggest/?doctor_id=1&patient_id=7&preferred_date=2024-01-15
	"""
	permission_classes = [IsAuthenticated]
	serializer_class = SuggestionQuerySerializer

	def get(self, request, *args, **kwargs):
		serializer = self.get_serializer(data=request.query_params)
		if not serializer.is_valid():
			return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
		params = serializer.validated_data

		err = _doctor_error(params['doctor_id'])
		if err is not None:
			return err

		policy = SchedulingPolicy.from_settings()
		try:
			type_obj, type_duration = resolve_type_duration(params.get('type_id'))

			duration_minutes = params.get('duration_minutes')
			if duration_minutes is None:
				if type_obj is None:
					duration_minutes = policy.default_duration_minutes
				else:
					# None: derived from the patient's history for this type
					duration_minutes = type_duration

			suggestion_request = SuggestionRequest(
				doctor_id=params['doctor_id'],
				patient_id=params['patient_id'],
				preferred_date=params['preferred_date'],
				time_zone=params['time_zone'],
				business_hours=business_hours_from_practice_hours(),
				preferred_time=params.get('preferred_time'),
				duration_minutes=duration_minutes,
				service_type=type_obj.name if type_obj is not None else None,
				top_k=params.get('limit'),
			)
			service = SuggestionService(DjangoAppointmentStore(), policy=policy)
			slots = service.get_suggestions(suggestion_request)
		except InvalidArgument as exc:
			return Response(exc.to_dict(), status=status.HTTP_400_BAD_REQUEST)
		except UpstreamUnavailable as exc:
			logger.warning('Suggestions unavailable for doctor_id=%s: %s', params['doctor_id'], exc.message)
			return Response(exc.to_dict(), status=status.HTTP_503_SERVICE_UNAVAILABLE)

		return Response(
			{'suggestions': TimeSlotSerializer(slots, many=True).data},
			status=status.HTTP_200_OK,
		)


class ConflictCheckView(generics.GenericAPIView):
	"""Checks a proposed interval against the doctor's bookings.

	GET /api/appointments/check-conflict/?doctor_id=1&start_time=...&end_time=...

	An optional ``form_key`` identifies the booking form instance; a check that
	was superseded by a newer one for the same key answers ``{"superseded": true}``.
	"""
	permission_classes = [IsAuthenticated]
	serializer_class = ConflictCheckQuerySerializer

	def get(self, request, *args, **kwargs):
		serializer = self.get_serializer(data=request.query_params)
		if not serializer.is_valid():
			return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
		params = serializer.validated_data

		err = _doctor_error(params['doctor_id'])
		if err is not None:
			return err

		check_request = ConflictCheckRequest(
			doctor_id=params['doctor_id'],
			start_time=params['start_time'],
			end_time=params['end_time'],
			exclude_appointment_id=params.get('exclude_appointment_id'),
		)
		service = ConflictService(DjangoAppointmentStore(), gate=_conflict_gate)
		form_key = params.get('form_key')

		try:
			if form_key:
				result = service.check_for_form(form_key, check_request)
			else:
				result = service.check(check_request)
		except InvalidArgument as exc:
			return Response(exc.to_dict(), status=status.HTTP_400_BAD_REQUEST)
		except ConflictCheckUnavailable as exc:
			return Response(exc.to_dict(), status=status.HTTP_503_SERVICE_UNAVAILABLE)

		if result is None:
			return Response({'superseded': True}, status=status.HTTP_200_OK)
		return Response(result.to_dict(), status=status.HTTP_200_OK)
