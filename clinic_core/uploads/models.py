from django.db import models

from clinic_core.common.models import UUIDModel


class Upload(UUIDModel):
    """
    Stored media file (exercise photo/video). Owned by one patient.
    """
    patient = models.ForeignKey(
        "patients.Patient",
        on_delete=models.CASCADE,
        related_name="uploads",
    )
    file = models.FileField(upload_to="uploads/%Y/%m/")
    original_name = models.CharField(max_length=255, blank=True)
    mime_type = models.CharField(max_length=128)
    size_bytes = models.PositiveBigIntegerField()
    uploaded_by_user_id = models.IntegerField(null=True, blank=True)

    class Meta:
        db_table = "uploads_upload"

    def __str__(self) -> str:
        return self.original_name or str(self.id)
