# clinic_core/completions/services.py

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from clinic_core.audit.models import AuditAction
from clinic_core.audit.services import AuditService
from clinic_core.common.api.exceptions import (
    AlreadyInTerminalStateError,
    ForbiddenError,
    NotFoundError,
)
from clinic_core.common.conf import clinic_policy
from clinic_core.common.request_meta import RequestMeta
from clinic_core.completions.models import CompletionEvent
from clinic_core.iam.actors import Actor, can_record_completion
from clinic_core.notifications.models import NotificationKind
from clinic_core.notifications.services import NotificationService
from clinic_core.patients.models import Patient
from clinic_core.therapy.models import TherapyPlanExercise
from clinic_core.uploads.services import StorageService

logger = logging.getLogger(__name__)

PAIN_RANGE = (0, 10)
SATISFACTION_RANGE = (1, 5)


def _check_range(field: str, value: Optional[int], bounds: tuple[int, int]) -> Optional[int]:
    if value is None:
        return None
    low, high = bounds
    if not (low <= int(value) <= high):
        raise ValidationError({field: f"Must be between {low} and {high}."})
    return int(value)


def build_completion_message(event: CompletionEvent) -> str:
    """Clinician-facing summary of a completion, including patient feedback."""
    exercise_name = event.plan_exercise.exercise.name or "an exercise"
    lines = [f'Patient {event.patient.full_name} completed "{exercise_name}" today.']

    feedback: list[str] = []
    if event.pain_level is not None:
        feedback.append(f"Pain Level: {event.pain_level}/10")
    if event.satisfaction is not None:
        feedback.append(f"Satisfaction: {event.satisfaction}/5")
    if event.notes:
        feedback.append(f"Notes: {event.notes}")
    if feedback:
        lines.append(" | ".join(feedback))

    return "\n".join(lines)


class CompletionService:
    """
    Completion event write-model.

    Notes:
    - Every create resolves its target to one canonical plan-exercise first.
    - Undo has two paths: the owning patient within the grace window (no
      reason, no audit) or staff at any time (reason required, audited).
    - The clinician notification is sent after commit and never affects the
      stored event.
    """

    # -------------------------
    # Target resolution
    # -------------------------
    @staticmethod
    def resolve_target(
        *,
        therapy_plan_exercise_id: Optional[UUID] = None,
        exercise_id: Optional[UUID] = None,
        therapy_plan_id: Optional[UUID] = None,
    ) -> TherapyPlanExercise:
        qs = TherapyPlanExercise.objects.select_related("plan", "exercise").filter(archived=False)

        if therapy_plan_exercise_id:
            entry = qs.filter(id=therapy_plan_exercise_id).first()
        elif exercise_id and therapy_plan_id:
            entry = qs.filter(exercise_id=exercise_id, plan_id=therapy_plan_id).order_by("order").first()
        else:
            raise ValidationError(
                {"therapy_plan_exercise_id": "Provide therapy_plan_exercise_id, or exercise_id with therapy_plan_id."}
            )

        if entry is None:
            raise NotFoundError("Therapy plan exercise not found or archived")
        return entry

    # -------------------------
    # Record
    # -------------------------
    @staticmethod
    @transaction.atomic
    def record(
        *,
        actor: Actor,
        patient_id: UUID,
        therapy_plan_exercise_id: Optional[UUID] = None,
        exercise_id: Optional[UUID] = None,
        therapy_plan_id: Optional[UUID] = None,
        notes: str = "",
        pain_level: Optional[int] = None,
        satisfaction: Optional[int] = None,
        media_upload_id: Optional[UUID] = None,
        media_file=None,
    ) -> CompletionEvent:
        if not can_record_completion(actor, patient_id=patient_id):
            raise ForbiddenError("Patients can only record their own completions.")

        patient = Patient.objects.filter(id=patient_id).first()
        if patient is None:
            raise NotFoundError("Patient not found")

        entry = CompletionService.resolve_target(
            therapy_plan_exercise_id=therapy_plan_exercise_id,
            exercise_id=exercise_id,
            therapy_plan_id=therapy_plan_id,
        )
        if entry.plan.patient_id != patient.id:
            raise ForbiddenError("Therapy plan exercise does not belong to this patient")

        pain_level = _check_range("pain_level", pain_level, PAIN_RANGE)
        satisfaction = _check_range("satisfaction", satisfaction, SATISFACTION_RANGE)

        if media_file is not None:
            stored = StorageService.store(
                file=media_file,
                patient_id=patient.id,
                uploaded_by_user_id=actor.user_id,
            )
            media_upload_id = stored.id
        elif media_upload_id is not None:
            if StorageService.get_for_patient(upload_id=media_upload_id, patient_id=patient.id) is None:
                raise NotFoundError("Media upload not found or does not belong to this patient")

        event = CompletionEvent.objects.create(
            plan_exercise=entry,
            patient=patient,
            completed_at=timezone.now(),
            notes=notes or "",
            pain_level=pain_level,
            satisfaction=satisfaction,
            media_id=media_upload_id,
            recorded_by_user_id=actor.user_id,
        )

        event_id = event.id
        transaction.on_commit(lambda: CompletionService.notify_clinician(event_id=event_id))
        return event

    @staticmethod
    def notify_clinician(*, event_id: UUID) -> None:
        """Best-effort: failures are logged, never raised."""
        try:
            event = CompletionEvent.objects.select_related(
                "patient",
                "plan_exercise__exercise",
                "plan_exercise__plan__doctor",
            ).get(id=event_id)
            plan = event.plan_exercise.plan
            NotificationService.notify_user(
                recipient_user_id=plan.doctor.user_id,
                title="Exercise Completed",
                kind=NotificationKind.EXERCISE_COMPLETED,
                message=build_completion_message(event),
                payload={
                    "completion_id": str(event.id),
                    "patient_id": str(event.patient_id),
                    "therapy_plan_id": str(plan.id),
                    "therapy_plan_exercise_id": str(event.plan_exercise_id),
                    "exercise_name": event.plan_exercise.exercise.name,
                    "completed_at": event.completed_at.isoformat(),
                    "pain_level": event.pain_level,
                    "satisfaction": event.satisfaction,
                },
                email=clinic_policy().notify_by_email,
            )
        except Exception:
            logger.exception("Completion notification failed for event %s", event_id)

    # -------------------------
    # Undo
    # -------------------------
    @staticmethod
    @transaction.atomic
    def undo(
        *,
        actor: Actor,
        event_id: UUID,
        reason: Optional[str] = None,
        meta: RequestMeta | None = None,
    ) -> CompletionEvent:
        try:
            event = CompletionEvent.objects.select_for_update().get(id=event_id)
        except (CompletionEvent.DoesNotExist, DjangoValidationError):
            raise NotFoundError("Completion event not found")

        if event.undone:
            raise AlreadyInTerminalStateError("Completion event is already undone.")

        now = timezone.now()

        if actor.is_patient:
            if event.patient_id != actor.patient_id:
                raise ForbiddenError("You can only undo your own completions.")
            if now - event.completed_at > clinic_policy().patient_undo_window:
                raise ForbiddenError("The undo window for this completion has passed.")
            stored_reason = None
        elif actor.is_staff:
            stored_reason = (reason or "").strip()
            if not stored_reason:
                raise ValidationError({"reason": "A reason is required to undo a completion."})
        else:
            raise ForbiddenError("You do not have permission to undo this completion.")

        event.undone = True
        event.undone_at = now
        event.undone_reason = stored_reason
        event.undone_by_user_id = actor.user_id
        event.save(update_fields=["undone", "undone_at", "undone_reason", "undone_by_user_id", "updated_at"])

        if actor.is_staff:
            AuditService.record_best_effort(
                action=AuditAction.UNDO,
                entity_type="CompletionEvent",
                entity_id=event.id,
                actor_user_id=actor.user_id,
                changes={
                    "undone": {"from": False, "to": True},
                    "reason": stored_reason,
                    "undone_at": now.isoformat(),
                },
                meta=meta,
            )

        logger.info("Completion event %s undone by user_id=%s", event.id, actor.user_id)
        return event
