# clinic_core/common/models.py
from __future__ import annotations

import uuid

from django.db import models


class UUIDModel(models.Model):
    """
    Abstract base for clinic entities: UUID primary key, creation stamp
    (indexed for history queries) and a last-modified stamp.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
