# clinic_core/audit/services.py
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional
from uuid import UUID

from django.db import transaction

from clinic_core.audit.models import AuditLogEntry
from clinic_core.common.request_meta import RequestMeta

logger = logging.getLogger(__name__)

USER_AGENT_MAX = 512


class AuditService:
    """
    Writer for the append-only audit log.

    ``log`` raises on failure. Domain services call ``record_best_effort``
    after their own write so an audit outage never blocks a cancel or undo.
    """

    @staticmethod
    @transaction.atomic
    def log(
        *,
        action: str,
        entity_type: str,
        entity_id: UUID,
        actor_user_id: int | None,
        changes: Optional[Mapping[str, Any]] = None,
        meta: RequestMeta | None = None,
    ) -> AuditLogEntry:
        meta = meta or RequestMeta()
        return AuditLogEntry.objects.create(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_user_id=actor_user_id,
            changes=dict(changes or {}),
            ip_address=meta.ip_address,
            user_agent=(meta.user_agent or "")[:USER_AGENT_MAX],
        )

    @staticmethod
    def record_best_effort(**kwargs) -> AuditLogEntry | None:
        # log() is atomic, so inside a caller's transaction it runs in a
        # savepoint and a failed insert rolls back alone.
        try:
            return AuditService.log(**kwargs)
        except Exception:
            logger.exception(
                "Audit write failed for %s %s:%s",
                kwargs.get("action"),
                kwargs.get("entity_type"),
                kwargs.get("entity_id"),
            )
            return None
