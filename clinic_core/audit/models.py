# clinic_core/audit/models.py
import uuid

from django.db import models


class AuditAction(models.TextChoices):
    CANCEL = "CANCEL", "Cancel"
    UNDO = "UNDO", "Undo"


class AuditLogEntry(models.Model):
    """
    Immutable audit record. Rows are only ever inserted.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    actor_user_id = models.IntegerField(null=True, blank=True, db_index=True)
    entity_type = models.CharField(max_length=64, db_index=True)  # e.g. "Appointment"
    entity_id = models.UUIDField(db_index=True)
    action = models.CharField(max_length=32, choices=AuditAction.choices, db_index=True)
    changes = models.JSONField(default=dict, blank=True)

    occurred_at = models.DateTimeField(auto_now_add=True, db_index=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.CharField(max_length=512, blank=True, default="")

    class Meta:
        db_table = "audit_log_entry"
        ordering = ["-occurred_at"]
        indexes = [
            models.Index(fields=["entity_type", "entity_id"], name="audit_entity_idx"),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Audit log entries are append-only.")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Audit log entries are append-only.")

    def __str__(self) -> str:
        return f"{self.action} {self.entity_type}:{self.entity_id}"
