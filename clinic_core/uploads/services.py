from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from django.db import transaction
from rest_framework.exceptions import ValidationError

from clinic_core.uploads.models import Upload

logger = logging.getLogger(__name__)

MAX_UPLOAD_SIZE_BYTES = 50 * 1024 * 1024
ALLOWED_MIME_PREFIXES = ("image/", "video/")


@dataclass(frozen=True)
class StoredFile:
    id: UUID
    url: str
    size: int
    mime_type: str


class StorageService:
    @staticmethod
    def _to_stored(upload: Upload) -> StoredFile:
        return StoredFile(
            id=upload.id,
            url=upload.file.url,
            size=upload.size_bytes,
            mime_type=upload.mime_type,
        )

    @staticmethod
    @transaction.atomic
    def store(*, file, patient_id: UUID, uploaded_by_user_id: int | None) -> StoredFile:
        """
        Persist an uploaded file for ``patient_id`` through the default storage backend.
        """
        if file is None:
            raise ValidationError({"file": "This field is required."})

        if file.size > MAX_UPLOAD_SIZE_BYTES:
            raise ValidationError({"file": f"File exceeds {MAX_UPLOAD_SIZE_BYTES // (1024 * 1024)}MB."})

        mime_type = getattr(file, "content_type", None) or "application/octet-stream"
        if not mime_type.startswith(ALLOWED_MIME_PREFIXES):
            raise ValidationError({"file": "Only image or video files are accepted."})

        upload = Upload.objects.create(
            patient_id=patient_id,
            file=file,
            original_name=(getattr(file, "name", "") or "")[:255],
            mime_type=mime_type,
            size_bytes=file.size,
            uploaded_by_user_id=uploaded_by_user_id,
        )
        logger.info("Stored upload %s for patient %s", upload.id, patient_id)
        return StorageService._to_stored(upload)

    @staticmethod
    def get_for_patient(*, upload_id: UUID, patient_id: UUID) -> StoredFile | None:
        upload = Upload.objects.filter(id=upload_id, patient_id=patient_id).first()
        return StorageService._to_stored(upload) if upload else None
