# clinic_core/completions/models.py
from __future__ import annotations

from django.db import models
from django.utils import timezone

from clinic_core.common.models import UUIDModel


class CompletionEvent(UUIDModel):
    """
    One logged performance of a plan exercise.

    Lifecycle: RECORDED -> UNDONE (terminal). Once undone the row is not
    modified again.
    """
    plan_exercise = models.ForeignKey(
        "therapy.TherapyPlanExercise",
        on_delete=models.PROTECT,
        related_name="completion_events",
    )
    # Copied from the plan at record time so history filters stay cheap.
    patient = models.ForeignKey(
        "patients.Patient",
        on_delete=models.PROTECT,
        related_name="completion_events",
    )

    completed_at = models.DateTimeField(default=timezone.now, db_index=True)
    notes = models.TextField(blank=True, default="")
    pain_level = models.PositiveSmallIntegerField(null=True, blank=True)
    satisfaction = models.PositiveSmallIntegerField(null=True, blank=True)
    media = models.ForeignKey(
        "uploads.Upload",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="completion_events",
    )
    recorded_by_user_id = models.IntegerField(null=True, blank=True)

    undone = models.BooleanField(default=False, db_index=True)
    undone_at = models.DateTimeField(null=True, blank=True)
    undone_reason = models.TextField(null=True, blank=True)
    undone_by_user_id = models.IntegerField(null=True, blank=True)

    class Meta:
        db_table = "completion_event"
        ordering = ["-completed_at"]
        indexes = [
            models.Index(fields=["patient", "completed_at"], name="completion_patient_at_idx"),
            models.Index(fields=["plan_exercise", "completed_at"], name="completion_pe_at_idx"),
        ]

    @property
    def state(self) -> str:
        return "UNDONE" if self.undone else "RECORDED"

    def __str__(self) -> str:
        return f"{self.plan_exercise_id} @ {self.completed_at:%Y-%m-%d %H:%M} ({self.state})"
