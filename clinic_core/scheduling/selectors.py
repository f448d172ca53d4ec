# clinic_core/scheduling/selectors.py
from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import QuerySet

from clinic_core.iam.actors import Actor
from clinic_core.scheduling.models import Appointment, AppointmentStatus


class AppointmentSelector:
    class NotFound(Exception):
        pass

    @staticmethod
    def base_qs() -> QuerySet[Appointment]:
        return Appointment.objects.select_related("patient", "doctor")

    @staticmethod
    def get_appointment(*, appointment_id) -> Appointment:
        try:
            return AppointmentSelector.base_qs().get(id=appointment_id)
        except (Appointment.DoesNotExist, DjangoValidationError):
            raise AppointmentSelector.NotFound()

    @staticmethod
    def conflicting(
        *,
        doctor_id: UUID,
        start_at: datetime,
        end_at: datetime,
        exclude_appointment_id: Optional[UUID] = None,
    ) -> QuerySet[Appointment]:
        """
        Non-cancelled appointments of ``doctor_id`` overlapping [start_at, end_at).
        """
        qs = Appointment.objects.filter(
            doctor_id=doctor_id,
            start_at__lt=end_at,
            end_at__gt=start_at,
        ).exclude(status=AppointmentStatus.CANCELLED)

        if exclude_appointment_id:
            qs = qs.exclude(id=exclude_appointment_id)
        return qs

    @staticmethod
    def visible_to(actor: Actor) -> QuerySet[Appointment]:
        """Patients see only their own appointments; staff see all."""
        qs = AppointmentSelector.base_qs()
        if actor.is_staff:
            return qs
        if actor.is_patient:
            return qs.filter(patient_id=actor.patient_id)
        return qs.none()

    @staticmethod
    def calendar(
        *,
        actor: Actor,
        start: datetime,
        end: datetime,
        doctor_id: Optional[UUID] = None,
        patient_id: Optional[UUID] = None,
    ) -> QuerySet[Appointment]:
        """
        Appointments starting inside [start, end].

        Clinicians default to their own calendar when no doctor is given.
        Patients are always pinned to themselves.
        """
        qs = AppointmentSelector.visible_to(actor).filter(start_at__gte=start, start_at__lte=end)

        if actor.is_clinician and not doctor_id:
            doctor_id = actor.doctor_id

        if doctor_id:
            qs = qs.filter(doctor_id=doctor_id)
        if patient_id:
            qs = qs.filter(patient_id=patient_id)

        return qs.order_by("start_at")
