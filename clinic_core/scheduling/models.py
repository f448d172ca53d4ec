# clinic_core/scheduling/models.py
from __future__ import annotations

from datetime import timedelta

from django.db import models

from clinic_core.common.models import UUIDModel


class AppointmentStatus(models.TextChoices):
    SCHEDULED = "SCHEDULED", "Scheduled"
    IN_PROGRESS = "IN_PROGRESS", "In progress"
    COMPLETED = "COMPLETED", "Completed"
    CANCELLED = "CANCELLED", "Cancelled"


class Appointment(UUIDModel):
    """
    One doctor/patient booking occupying [start_at, end_at).

    end_at is derived from start_at + duration_minutes on every save so the
    overlap query (and the PostgreSQL exclusion constraint) can use plain
    column comparisons.
    """
    patient = models.ForeignKey(
        "patients.Patient",
        on_delete=models.PROTECT,
        related_name="appointments",
    )
    doctor = models.ForeignKey(
        "clinicians.Doctor",
        on_delete=models.PROTECT,
        related_name="appointments",
    )

    start_at = models.DateTimeField(db_index=True)
    duration_minutes = models.PositiveIntegerField(default=60)
    end_at = models.DateTimeField(editable=False)

    status = models.CharField(
        max_length=16,
        choices=AppointmentStatus.choices,
        default=AppointmentStatus.SCHEDULED,
        db_index=True,
    )
    notes = models.TextField(blank=True, default="")

    created_by_user_id = models.IntegerField(null=True, blank=True)
    visit_request_id = models.UUIDField(null=True, blank=True, db_index=True)

    class Meta:
        db_table = "scheduling_appointment"
        ordering = ["start_at"]
        indexes = [
            models.Index(fields=["doctor", "start_at"], name="appt_doctor_start_idx"),
            models.Index(fields=["patient", "start_at"], name="appt_patient_start_idx"),
        ]

    def save(self, *args, **kwargs):
        self.end_at = self.start_at + timedelta(minutes=self.duration_minutes)
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and {"start_at", "duration_minutes"} & set(update_fields):
            kwargs["update_fields"] = list({*update_fields, "end_at"})
        super().save(*args, **kwargs)

    @property
    def is_terminal(self) -> bool:
        return self.status in (AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED)

    def __str__(self) -> str:
        return f"{self.doctor_id} @ {self.start_at:%Y-%m-%d %H:%M} ({self.status})"
