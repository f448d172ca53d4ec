# clinic_core/scheduling/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from clinic_core.scheduling.models import Appointment, AppointmentStatus


class AppointmentSerializer(serializers.ModelSerializer):
    patient_name = serializers.CharField(source="patient.full_name", read_only=True)
    doctor_name = serializers.CharField(source="doctor.full_name", read_only=True)

    class Meta:
        model = Appointment
        fields = [
            "id",
            "patient_id",
            "patient_name",
            "doctor_id",
            "doctor_name",
            "start_at",
            "duration_minutes",
            "end_at",
            "status",
            "notes",
            "created_by_user_id",
            "visit_request_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class AppointmentCreateSerializer(serializers.Serializer):
    patient_id = serializers.UUIDField()
    doctor_id = serializers.UUIDField()
    start_at = serializers.DateTimeField()
    duration_minutes = serializers.IntegerField(required=False, min_value=1)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    visit_request_id = serializers.UUIDField(required=False, allow_null=True)


class AppointmentUpdateSerializer(serializers.Serializer):
    start_at = serializers.DateTimeField(required=False)
    duration_minutes = serializers.IntegerField(required=False, min_value=1)
    status = serializers.ChoiceField(choices=AppointmentStatus.choices, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class AppointmentCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class CalendarQuerySerializer(serializers.Serializer):
    start = serializers.DateTimeField()
    end = serializers.DateTimeField()
    doctor_id = serializers.UUIDField(required=False)
    patient_id = serializers.UUIDField(required=False)

    def validate(self, attrs):
        if attrs["start"] > attrs["end"]:
            raise serializers.ValidationError({"end": "Must not be before start."})
        return attrs


class AvailabilityQuerySerializer(serializers.Serializer):
    doctor_id = serializers.UUIDField()
    start_at = serializers.DateTimeField()
    duration_minutes = serializers.IntegerField(required=False, min_value=1)
    exclude_appointment_id = serializers.UUIDField(required=False)


class AvailabilityResponseSerializer(serializers.Serializer):
    accepted = serializers.BooleanField()
    reason = serializers.CharField(allow_null=True)
