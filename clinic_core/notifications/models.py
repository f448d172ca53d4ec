# clinic_core/notifications/models.py
from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

from clinic_core.common.models import UUIDModel


class NotificationChannel(models.TextChoices):
    IN_APP = "IN_APP", "In App"
    EMAIL = "EMAIL", "Email"


class NotificationKind(models.TextChoices):
    EXERCISE_COMPLETED = "EXERCISE_COMPLETED", "Exercise completed"
    GENERAL = "GENERAL", "General"


class Notification(UUIDModel):
    """
    One delivery to one user.

    IN_APP rows form the user's inbox. An EMAIL row is written once the mail
    backend accepted the copy and is born read.
    """
    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    channel = models.CharField(max_length=16, choices=NotificationChannel.choices, default=NotificationChannel.IN_APP)
    kind = models.CharField(max_length=32, choices=NotificationKind.choices, default=NotificationKind.GENERAL)

    title = models.CharField(max_length=255)
    body = models.TextField(blank=True, default="")
    # Ids the client needs to deep-link, e.g. completion_id / therapy_plan_id.
    payload = models.JSONField(default=dict, blank=True)

    read_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "notification"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["recipient", "channel", "read_at"], name="notif_inbox_idx"),
        ]

    @property
    def is_read(self) -> bool:
        return self.read_at is not None

    def mark_read(self) -> bool:
        """Stamp read_at once. Returns False if it was already read."""
        if self.read_at is not None:
            return False
        self.read_at = timezone.now()
        return True

    def __str__(self) -> str:
        return f"{self.channel} to {self.recipient_id}: {self.title}"
