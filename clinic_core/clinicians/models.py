# clinic_core/clinicians/models.py
from django.conf import settings
from django.db import models

from clinic_core.common.models import UUIDModel


class Doctor(UUIDModel):
    """
    Treating clinician (physiotherapist). Owns appointments and therapy plans.
    """
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="doctor_profile",
    )
    full_name = models.CharField(max_length=255)
    specialty = models.CharField(max_length=128, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "clinicians_doctor"

    def __str__(self) -> str:
        return self.full_name
