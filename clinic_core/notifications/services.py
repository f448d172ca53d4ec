# clinic_core/notifications/services.py
from __future__ import annotations

import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.mail import send_mail
from django.db import transaction

from clinic_core.notifications.models import Notification, NotificationChannel, NotificationKind

logger = logging.getLogger(__name__)


class NotificationService:
    @staticmethod
    @transaction.atomic
    def notify_user(
        *,
        recipient_user_id: int,
        title: str,
        message: str,
        payload: dict | None = None,
        kind: str = NotificationKind.GENERAL,
        email: bool = False,
    ) -> list[Notification]:
        """
        Write the in-app notification, then mail a copy when ``email`` is set
        and the recipient has an address on file. Returns the rows written.

        A failed mail send is logged and leaves the in-app row in place.
        """
        fields = {
            "recipient_id": recipient_user_id,
            "kind": kind,
            "title": title,
            "body": message,
            "payload": payload or {},
        }
        rows = [Notification.objects.create(channel=NotificationChannel.IN_APP, **fields)]

        address = None
        if email:
            address = get_user_model().objects.filter(id=recipient_user_id).values_list("email", flat=True).first()
        if not address:
            return rows

        try:
            with transaction.atomic():
                send_mail(
                    subject=title,
                    message=message,
                    from_email=settings.DEFAULT_FROM_EMAIL,
                    recipient_list=[address],
                )
                email_row = Notification.objects.create(
                    channel=NotificationChannel.EMAIL, read_at=rows[0].created_at, **fields
                )
        except Exception:
            logger.exception("Email copy of notification %s failed (user_id=%s)", rows[0].id, recipient_user_id)
            return rows

        rows.append(email_row)
        logger.info("Notification %s mailed to user_id=%s", rows[0].id, recipient_user_id)
        return rows
