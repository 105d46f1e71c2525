from datetime import datetime

from django.conf import settings
from django.utils import timezone
from django.utils.dateparse import parse_datetime, parse_time

from rest_framework import serializers

from .exceptions import InvalidArgument
from .services.timeutils import resolve_zone


class SuggestionQuerySerializer(serializers.Serializer):
    """Query parameters of ``GET /api/appointments/suggest/``."""
    doctor_id = serializers.IntegerField()
    patient_id = serializers.IntegerField()
    preferred_date = serializers.DateField()
    preferred_time = serializers.CharField(required=False, allow_blank=True)
    duration_minutes = serializers.IntegerField(required=False, min_value=1)
    type_id = serializers.IntegerField(required=False)
    limit = serializers.IntegerField(required=False, min_value=1)
    time_zone = serializers.CharField(required=False, allow_blank=True)

    def validate_time_zone(self, value):
        if value in (None, ''):
            return getattr(settings, 'CLINIC_TIME_ZONE', settings.TIME_ZONE)
        try:
            resolve_zone(value)
        except InvalidArgument as exc:
            raise serializers.ValidationError(exc.message)
        return value

    def validate_preferred_time(self, value):
        """Accept a wall-clock time (``HH:MM``) or an ISO-8601 datetime."""
        if value in (None, ''):
            return None
        if value.endswith('Z'):
            value = value[:-1] + '+00:00'
        try:
            if 'T' not in value and ' ' not in value:
                parsed = parse_time(value)
            else:
                parsed = parse_datetime(value)
        except ValueError:
            parsed = None
        if parsed is None:
            raise serializers.ValidationError('preferred_time must be HH:MM or an ISO-8601 datetime.')
        return parsed

    def validate(self, attrs):
        attrs = super().validate(attrs)
        attrs.setdefault('time_zone', self.validate_time_zone(None))
        instant = attrs.get('preferred_time')
        if isinstance(instant, datetime) and timezone.is_naive(instant):
            attrs['preferred_time'] = timezone.make_aware(instant, resolve_zone(attrs['time_zone']))
        return attrs


class ConflictCheckQuerySerializer(serializers.Serializer):
    """Query parameters of ``GET /api/appointments/check-conflict/``."""
    doctor_id = serializers.IntegerField()
    start_time = serializers.DateTimeField()
    end_time = serializers.DateTimeField()
    exclude_appointment_id = serializers.IntegerField(required=False)
    form_key = serializers.CharField(required=False, allow_blank=True, max_length=128)

    def validate(self, attrs):
        if attrs['end_time'] <= attrs['start_time']:
            raise serializers.ValidationError({'end_time': 'end_time must be after start_time.'})
        return attrs


class TimeSlotSerializer(serializers.Serializer):
    start_time = serializers.DateTimeField(source='start')
    end_time = serializers.DateTimeField(source='end')
    score = serializers.FloatField()
