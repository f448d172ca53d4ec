# clinic_core/therapy/services.py

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Optional
from uuid import UUID

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Max
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from clinic_core.clinicians.models import Doctor
from clinic_core.common.api.exceptions import ForbiddenError, NotFoundError
from clinic_core.iam.actors import Actor, can_create_plan, can_mutate_plan
from clinic_core.patients.models import Patient
from clinic_core.therapy.models import (
    Exercise,
    ExerciseDifficulty,
    TherapyPlan,
    TherapyPlanExercise,
    TherapyPlanStatus,
    TherapyPlanVersion,
)

logger = logging.getLogger(__name__)

PLAN_EXERCISE_FIELDS = ("reps", "sets", "duration", "frequency", "notes")


def normalize_difficulty(value: Optional[str]) -> Optional[str]:
    if value in (None, ""):
        return None
    upper = str(value).strip().upper()
    if upper not in ExerciseDifficulty.values:
        raise ValidationError(
            {"difficulty": f"Must be one of {', '.join(ExerciseDifficulty.values)}."}
        )
    return upper


class TherapyPlanService:
    """
    Therapy plan write-model.

    Notes:
    - add / archive / reorder are structural: each one bumps plan.version by 1
      and appends exactly one TherapyPlanVersion row, in the same transaction,
      with the plan row locked.
    - update_exercise edits prescription parameters only and is NOT versioned.
    - Plan exercises are never deleted; archive hides them.
    """

    # -------------------------
    # Internal helpers
    # -------------------------
    @staticmethod
    def _lock_plan(plan_id: UUID) -> TherapyPlan:
        try:
            return TherapyPlan.objects.select_for_update().get(id=plan_id)
        except (TherapyPlan.DoesNotExist, DjangoValidationError):
            raise NotFoundError("Therapy plan not found")

    @staticmethod
    def _assert_can_mutate(actor: Actor, plan: TherapyPlan) -> None:
        if not can_mutate_plan(actor, plan_doctor_id=plan.doctor_id):
            raise ForbiddenError("Only the plan's clinician or an administrator can change this plan.")

    @staticmethod
    def _active_entry(plan: TherapyPlan, plan_exercise_id: UUID) -> TherapyPlanExercise:
        try:
            return (
                TherapyPlanExercise.objects.select_for_update()
                .select_related("exercise")
                .get(id=plan_exercise_id, plan_id=plan.id, archived=False)
            )
        except (TherapyPlanExercise.DoesNotExist, DjangoValidationError):
            raise NotFoundError("Plan exercise not found")

    @staticmethod
    def _bump_version(plan: TherapyPlan, *, summary: str, author_user_id: int | None) -> TherapyPlanVersion:
        """Caller must hold the plan row lock."""
        plan.version += 1
        plan.save(update_fields=["version", "updated_at"])
        return TherapyPlanVersion.objects.create(
            plan=plan,
            version=plan.version,
            summary=summary[:512],
            author_user_id=author_user_id,
        )

    @staticmethod
    def _next_order(plan: TherapyPlan) -> int:
        current = TherapyPlanExercise.objects.filter(plan_id=plan.id, archived=False).aggregate(m=Max("order"))["m"]
        return 0 if current is None else current + 1

    @staticmethod
    def _resolve_exercise(
        *,
        exercise_id: Optional[UUID],
        name: Optional[str],
        description: str,
        difficulty: Optional[str],
    ) -> Exercise:
        if exercise_id:
            try:
                return Exercise.objects.get(id=exercise_id, archived=False)
            except (Exercise.DoesNotExist, DjangoValidationError):
                raise NotFoundError("Exercise not found")

        if name and name.strip():
            return Exercise.objects.create(
                name=name.strip(),
                description=description or "",
                difficulty=normalize_difficulty(difficulty),
            )

        raise ValidationError({"exercise": "Provide exercise_id or an inline exercise name."})

    # -------------------------
    # Plan lifecycle
    # -------------------------
    @staticmethod
    @transaction.atomic
    def create_plan(
        *,
        actor: Actor,
        patient_id: UUID,
        name: str,
        start_date: date,
        doctor_id: Optional[UUID] = None,
        description: str = "",
        end_date: Optional[date] = None,
        status: str = TherapyPlanStatus.ACTIVE,
    ) -> TherapyPlan:
        if doctor_id is None and actor.is_clinician:
            doctor_id = actor.doctor_id
        if doctor_id is None:
            raise ValidationError({"doctor_id": "This field is required."})

        if not can_create_plan(actor, doctor_id=doctor_id):
            raise ForbiddenError("Clinicians can only create plans they own.")

        if end_date and end_date < start_date:
            raise ValidationError({"end_date": "Must not be before start_date."})

        if not Patient.objects.filter(id=patient_id).exists():
            raise NotFoundError("Patient not found")
        if not Doctor.objects.filter(id=doctor_id).exists():
            raise NotFoundError("Doctor not found")

        plan = TherapyPlan.objects.create(
            patient_id=patient_id,
            doctor_id=doctor_id,
            name=name,
            description=description or "",
            start_date=start_date,
            end_date=end_date,
            status=status,
            version=1,
        )
        logger.info("Therapy plan %s created for patient %s", plan.id, patient_id)
        return plan

    # -------------------------
    # Structural edits (versioned)
    # -------------------------
    @staticmethod
    @transaction.atomic
    def add_exercise(
        *,
        actor: Actor,
        plan_id: UUID,
        exercise_id: Optional[UUID] = None,
        name: Optional[str] = None,
        description: str = "",
        difficulty: Optional[str] = None,
        order: Optional[int] = None,
        reps: Optional[int] = None,
        sets: Optional[int] = None,
        duration: Optional[int] = None,
        frequency: str = "",
        notes: str = "",
    ) -> TherapyPlanExercise:
        plan = TherapyPlanService._lock_plan(plan_id)
        TherapyPlanService._assert_can_mutate(actor, plan)

        exercise = TherapyPlanService._resolve_exercise(
            exercise_id=exercise_id,
            name=name,
            description=description,
            difficulty=difficulty,
        )

        if order is None:
            order = TherapyPlanService._next_order(plan)
        elif TherapyPlanExercise.objects.filter(plan_id=plan.id, archived=False, order=order).exists():
            raise ValidationError({"order": f"Position {order} is already taken in this plan."})

        entry = TherapyPlanExercise.objects.create(
            plan=plan,
            exercise=exercise,
            order=order,
            reps=reps,
            sets=sets,
            duration=duration,
            frequency=frequency or "",
            notes=notes or "",
        )

        TherapyPlanService._bump_version(plan, summary="Exercise added to plan", author_user_id=actor.user_id)
        return entry

    @staticmethod
    @transaction.atomic
    def archive_exercise(*, actor: Actor, plan_id: UUID, plan_exercise_id: UUID) -> TherapyPlanExercise:
        plan = TherapyPlanService._lock_plan(plan_id)
        TherapyPlanService._assert_can_mutate(actor, plan)

        entry = TherapyPlanService._active_entry(plan, plan_exercise_id)
        entry.archived = True
        entry.save(update_fields=["archived", "updated_at"])

        TherapyPlanService._bump_version(
            plan,
            summary=f'Exercise "{entry.exercise.name}" archived from plan',
            author_user_id=actor.user_id,
        )
        return entry

    @staticmethod
    @transaction.atomic
    def reorder_exercises(*, actor: Actor, plan_id: UUID, items: Iterable[dict]) -> list[TherapyPlanExercise]:
        """
        Apply ``[{"id": ..., "order": n}, ...]`` as one unit.

        Every id must be a non-archived exercise of this plan, no two items
        may claim the same order, and no item may take the order of an active
        exercise left out of the batch; otherwise nothing changes.
        """
        items = list(items or [])
        if not items:
            raise ValidationError({"items": "items array required"})

        plan = TherapyPlanService._lock_plan(plan_id)
        TherapyPlanService._assert_can_mutate(actor, plan)

        wanted: dict[str, int] = {}
        for item in items:
            try:
                pe_id = str(UUID(str(item.get("id"))))
                order = int(item.get("order"))
            except (TypeError, ValueError):
                raise ValidationError({"items": "Each item needs a valid id and an integer order."})
            if order < 0:
                raise ValidationError({"items": "order must be >= 0."})
            if pe_id in wanted:
                raise ValidationError({"items": f"Duplicate id {pe_id}."})
            wanted[pe_id] = order

        if len(set(wanted.values())) != len(wanted):
            raise ValidationError({"items": "Two items cannot share the same order."})

        entries = {
            str(e.id): e
            for e in TherapyPlanExercise.objects.select_for_update().filter(
                plan_id=plan.id, archived=False, id__in=list(wanted)
            )
        }
        missing = [pe_id for pe_id in wanted if pe_id not in entries]
        if missing:
            raise NotFoundError(f"Plan exercise not found: {', '.join(missing)}")

        taken = sorted(
            TherapyPlanExercise.objects.filter(plan_id=plan.id, archived=False, order__in=list(wanted.values()))
            .exclude(id__in=list(entries))
            .values_list("order", flat=True)
        )
        if taken:
            raise ValidationError({"items": f"Order already used by another exercise: {taken}."})

        stamp = timezone.now()
        for pe_id, order in wanted.items():
            entries[pe_id].order = order
            entries[pe_id].updated_at = stamp
        TherapyPlanExercise.objects.bulk_update(list(entries.values()), ["order", "updated_at"])

        TherapyPlanService._bump_version(plan, summary="Reordered exercises", author_user_id=actor.user_id)
        return sorted(entries.values(), key=lambda e: e.order)

    # -------------------------
    # Parameter edits (not versioned)
    # -------------------------
    @staticmethod
    @transaction.atomic
    def update_exercise(*, actor: Actor, plan_id: UUID, plan_exercise_id: UUID, **changes) -> TherapyPlanExercise:
        plan = TherapyPlanService._lock_plan(plan_id)
        TherapyPlanService._assert_can_mutate(actor, plan)

        entry = TherapyPlanService._active_entry(plan, plan_exercise_id)

        changed: list[str] = []
        for field in PLAN_EXERCISE_FIELDS:
            if field in changes and getattr(entry, field) != changes[field]:
                value = changes[field]
                if field in ("frequency", "notes") and value is None:
                    value = ""
                setattr(entry, field, value)
                changed.append(field)

        if changed:
            entry.save(update_fields=[*changed, "updated_at"])
        return entry
