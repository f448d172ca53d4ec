# clinic_core/therapy/models.py
from __future__ import annotations

import uuid

from django.db import models

from clinic_core.common.models import UUIDModel


class ExerciseDifficulty(models.TextChoices):
    BEGINNER = "BEGINNER", "Beginner"
    INTERMEDIATE = "INTERMEDIATE", "Intermediate"
    ADVANCED = "ADVANCED", "Advanced"


class Exercise(UUIDModel):
    """Catalog exercise, reusable across plans."""
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    difficulty = models.CharField(
        max_length=16,
        choices=ExerciseDifficulty.choices,
        null=True,
        blank=True,
    )
    archived = models.BooleanField(default=False, db_index=True)

    class Meta:
        db_table = "therapy_exercise"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class TherapyPlanStatus(models.TextChoices):
    ACTIVE = "ACTIVE", "Active"
    COMPLETED = "COMPLETED", "Completed"
    ARCHIVED = "ARCHIVED", "Archived"


class TherapyPlan(UUIDModel):
    """
    Ordered exercise prescription for one patient, owned by one doctor.

    ``version`` starts at 1 and every structural edit (add / archive /
    reorder) bumps it by exactly one and appends a TherapyPlanVersion row.
    """
    patient = models.ForeignKey(
        "patients.Patient",
        on_delete=models.PROTECT,
        related_name="therapy_plans",
    )
    doctor = models.ForeignKey(
        "clinicians.Doctor",
        on_delete=models.PROTECT,
        related_name="therapy_plans",
    )

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True)

    status = models.CharField(
        max_length=16,
        choices=TherapyPlanStatus.choices,
        default=TherapyPlanStatus.ACTIVE,
        db_index=True,
    )
    version = models.PositiveIntegerField(default=1)

    class Meta:
        db_table = "therapy_plan"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["patient", "status"], name="plan_patient_status_idx"),
            models.Index(fields=["doctor", "status"], name="plan_doctor_status_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.name} v{self.version}"


class TherapyPlanExercise(UUIDModel):
    plan = models.ForeignKey(
        TherapyPlan,
        on_delete=models.CASCADE,
        related_name="plan_exercises",
    )
    exercise = models.ForeignKey(
        Exercise,
        on_delete=models.PROTECT,
        related_name="plan_entries",
    )

    order = models.PositiveIntegerField(default=0)
    reps = models.PositiveIntegerField(null=True, blank=True)
    sets = models.PositiveIntegerField(null=True, blank=True)
    duration = models.PositiveIntegerField(null=True, blank=True, help_text="Seconds per set")
    frequency = models.CharField(max_length=128, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    archived = models.BooleanField(default=False, db_index=True)

    class Meta:
        db_table = "therapy_plan_exercise"
        ordering = ["order", "created_at"]
        indexes = [
            models.Index(fields=["plan", "archived", "order"], name="plan_ex_plan_order_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.plan_id} #{self.order} {self.exercise_id}"


class TherapyPlanVersion(models.Model):
    """
    Append-only ledger row: one per structural edit of a plan.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    plan = models.ForeignKey(
        TherapyPlan,
        on_delete=models.CASCADE,
        related_name="versions",
    )
    version = models.PositiveIntegerField()
    summary = models.CharField(max_length=512)
    author_user_id = models.IntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = "therapy_plan_version"
        ordering = ["plan", "version"]
        constraints = [
            models.UniqueConstraint(fields=["plan", "version"], name="uq_plan_version"),
        ]

    def __str__(self) -> str:
        return f"{self.plan_id} v{self.version}: {self.summary}"
