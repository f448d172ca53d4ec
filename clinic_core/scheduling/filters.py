from __future__ import annotations

import django_filters

from clinic_core.scheduling.models import Appointment, AppointmentStatus


class AppointmentFilter(django_filters.FilterSet):
    patient_id = django_filters.UUIDFilter(field_name="patient_id")
    doctor_id = django_filters.UUIDFilter(field_name="doctor_id")
    status = django_filters.ChoiceFilter(choices=AppointmentStatus.choices)
    start_after = django_filters.IsoDateTimeFilter(field_name="start_at", lookup_expr="gte")
    start_before = django_filters.IsoDateTimeFilter(field_name="start_at", lookup_expr="lte")

    class Meta:
        model = Appointment
        fields = ["patient_id", "doctor_id", "status", "start_after", "start_before"]
