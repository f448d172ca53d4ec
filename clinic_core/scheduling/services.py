# clinic_core/scheduling/services.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from rest_framework.exceptions import ValidationError

from clinic_core.audit.models import AuditAction
from clinic_core.audit.services import AuditService
from clinic_core.clinicians.models import Doctor
from clinic_core.common.api.exceptions import (
    AlreadyInTerminalStateError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
)
from clinic_core.common.conf import clinic_policy
from clinic_core.common.request_meta import RequestMeta
from clinic_core.iam.actors import Actor, can_book_appointments, can_manage_appointment
from clinic_core.patients.models import Patient
from clinic_core.scheduling import rules
from clinic_core.scheduling.models import Appointment, AppointmentStatus
from clinic_core.scheduling.selectors import AppointmentSelector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlotCheck:
    accepted: bool
    reason: Optional[str] = None


class AppointmentService:
    """
    Appointment write-model operations.

    Notes:
    - Checks run in a fixed order: business hours, referenced rows, doctor conflict.
    - The doctor row is locked (select_for_update) before the conflict query,
      so two bookings for the same doctor serialize instead of both passing.
    - On PostgreSQL an exclusion constraint backs the same rule; its
      IntegrityError is reported as a conflict.
    """

    # -------------------------
    # Internal helpers
    # -------------------------
    @staticmethod
    def _clean_duration(duration_minutes: Optional[int]) -> int:
        if duration_minutes is None:
            return clinic_policy().default_appointment_minutes
        duration = int(duration_minutes)
        if duration <= 0:
            raise ValidationError({"duration_minutes": "Must be a positive number of minutes."})
        return duration

    @staticmethod
    def _lock_doctor(doctor_id: UUID) -> Doctor:
        try:
            return Doctor.objects.select_for_update().get(id=doctor_id)
        except (Doctor.DoesNotExist, DjangoValidationError):
            raise NotFoundError("Doctor not found")

    @staticmethod
    def _lock_appointment(appointment_id: UUID) -> Appointment:
        try:
            return Appointment.objects.select_for_update().get(id=appointment_id)
        except (Appointment.DoesNotExist, DjangoValidationError):
            raise NotFoundError("Appointment not found")

    @staticmethod
    def _assert_can_manage(actor: Actor, appointment: Appointment) -> None:
        if not can_manage_appointment(actor, doctor_id=appointment.doctor_id):
            raise ForbiddenError("You can only manage your own appointments.")

    # -------------------------
    # Validation
    # -------------------------
    @staticmethod
    def validate_and_reserve(
        *,
        doctor_id: UUID,
        start_at: datetime,
        duration_minutes: int,
        patient_id: Optional[UUID] = None,
        exclude_appointment_id: Optional[UUID] = None,
    ) -> datetime:
        """
        Run hours -> existence -> conflict checks and return the slot end.

        Must be called inside a transaction; the doctor row stays locked
        until that transaction ends, which is what makes the reservation hold.
        """
        if not rules.within_business_hours(start_at, duration_minutes):
            raise ValidationError(rules.OUTSIDE_BUSINESS_HOURS)

        if patient_id is not None and not Patient.objects.filter(id=patient_id).exists():
            raise NotFoundError("Patient not found")
        AppointmentService._lock_doctor(doctor_id)

        end_at = rules.appointment_end(start_at, duration_minutes)
        clash = AppointmentSelector.conflicting(
            doctor_id=doctor_id,
            start_at=start_at,
            end_at=end_at,
            exclude_appointment_id=exclude_appointment_id,
        )
        if clash.exists():
            raise ConflictError(rules.DOCTOR_CONFLICT)

        return end_at

    @staticmethod
    def check_slot(
        *,
        doctor_id: UUID,
        start_at: datetime,
        duration_minutes: Optional[int] = None,
        exclude_appointment_id: Optional[UUID] = None,
    ) -> SlotCheck:
        """
        Read-only availability probe. Does not lock and does not write.
        """
        duration = AppointmentService._clean_duration(duration_minutes)

        if not rules.within_business_hours(start_at, duration):
            return SlotCheck(accepted=False, reason=rules.OUTSIDE_BUSINESS_HOURS)

        if not Doctor.objects.filter(id=doctor_id).exists():
            raise NotFoundError("Doctor not found")

        clash = AppointmentSelector.conflicting(
            doctor_id=doctor_id,
            start_at=start_at,
            end_at=rules.appointment_end(start_at, duration),
            exclude_appointment_id=exclude_appointment_id,
        )
        if clash.exists():
            return SlotCheck(accepted=False, reason=rules.DOCTOR_CONFLICT)

        return SlotCheck(accepted=True)

    # -------------------------
    # Create
    # -------------------------
    @staticmethod
    @transaction.atomic
    def create(
        *,
        actor: Actor,
        patient_id: UUID,
        doctor_id: UUID,
        start_at: datetime,
        duration_minutes: Optional[int] = None,
        notes: str = "",
        visit_request_id: Optional[UUID] = None,
    ) -> Appointment:
        if not can_book_appointments(actor) or not can_manage_appointment(actor, doctor_id=doctor_id):
            raise ForbiddenError("You can only book appointments for yourself.")

        duration = AppointmentService._clean_duration(duration_minutes)

        AppointmentService.validate_and_reserve(
            doctor_id=doctor_id,
            start_at=start_at,
            duration_minutes=duration,
            patient_id=patient_id,
        )

        try:
            with transaction.atomic():
                appt = Appointment.objects.create(
                    patient_id=patient_id,
                    doctor_id=doctor_id,
                    start_at=start_at,
                    duration_minutes=duration,
                    status=AppointmentStatus.SCHEDULED,
                    notes=notes or "",
                    created_by_user_id=actor.user_id,
                    visit_request_id=visit_request_id,
                )
        except IntegrityError:
            raise ConflictError(rules.DOCTOR_CONFLICT)

        logger.info("Appointment %s booked for doctor %s", appt.id, doctor_id)
        return appt

    # -------------------------
    # Update
    # -------------------------
    @staticmethod
    @transaction.atomic
    def update(
        *,
        actor: Actor,
        appointment_id: UUID,
        start_at: Optional[datetime] = None,
        duration_minutes: Optional[int] = None,
        status: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Appointment:
        """
        Partial update. Timing changes re-run hours + conflict checks,
        ignoring this appointment's own slot.
        """
        appt = AppointmentService._lock_appointment(appointment_id)
        AppointmentService._assert_can_manage(actor, appt)

        if appt.is_terminal:
            raise AlreadyInTerminalStateError(f"Appointment is already {appt.status}.")

        changed: list[str] = []

        if status is not None and status != appt.status:
            if status == AppointmentStatus.CANCELLED:
                raise ValidationError({"status": "Use the cancel action to cancel an appointment."})
            if not rules.can_transition(appt.status, status):
                raise ValidationError({"status": f"Cannot move from {appt.status} to {status}."})
            appt.status = status
            changed.append("status")

        new_start = start_at if start_at is not None else appt.start_at
        new_duration = (
            AppointmentService._clean_duration(duration_minutes)
            if duration_minutes is not None
            else appt.duration_minutes
        )
        if new_start != appt.start_at or new_duration != appt.duration_minutes:
            AppointmentService.validate_and_reserve(
                doctor_id=appt.doctor_id,
                start_at=new_start,
                duration_minutes=new_duration,
                exclude_appointment_id=appt.id,
            )
            appt.start_at = new_start
            appt.duration_minutes = new_duration
            changed.extend(["start_at", "duration_minutes"])

        if notes is not None and notes != appt.notes:
            appt.notes = notes
            changed.append("notes")

        if not changed:
            return appt

        changed.append("updated_at")
        try:
            with transaction.atomic():
                appt.save(update_fields=changed)
        except IntegrityError:
            raise ConflictError(rules.DOCTOR_CONFLICT)

        return appt

    # -------------------------
    # Cancel
    # -------------------------
    @staticmethod
    @transaction.atomic
    def cancel(
        *,
        actor: Actor,
        appointment_id: UUID,
        reason: Optional[str] = None,
        meta: RequestMeta | None = None,
    ) -> Appointment:
        appt = AppointmentService._lock_appointment(appointment_id)
        AppointmentService._assert_can_manage(actor, appt)

        if appt.is_terminal:
            raise AlreadyInTerminalStateError(f"Appointment is already {appt.status}.")

        reason = (reason or "").strip() or None
        prior_status = appt.status

        appt.status = AppointmentStatus.CANCELLED
        if reason:
            line = f"Cancelled: {reason}"
            appt.notes = f"{appt.notes}\n{line}" if appt.notes else line
        appt.save(update_fields=["status", "notes", "updated_at"])

        AuditService.record_best_effort(
            action=AuditAction.CANCEL,
            entity_type="Appointment",
            entity_id=appt.id,
            actor_user_id=actor.user_id,
            changes={
                "status": prior_status,
                "new_status": AppointmentStatus.CANCELLED,
                "reason": reason or "No reason provided",
            },
            meta=meta,
        )

        logger.info("Appointment %s cancelled by user_id=%s", appt.id, actor.user_id)
        return appt
