# clinic_core/notifications/api/views.py
from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from clinic_core.common.api.exceptions import NotFoundError
from clinic_core.notifications.api.serializers import NotificationSerializer
from clinic_core.notifications.models import Notification, NotificationChannel


class NotificationViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """Inbox of the calling user. Email delivery rows are not listed."""
    serializer_class = NotificationSerializer

    def get_queryset(self):
        qs = Notification.objects.filter(recipient_id=self.request.user.id, channel=NotificationChannel.IN_APP)
        unread = self.request.query_params.get("unread")
        if unread == "true":
            qs = qs.filter(read_at__isnull=True)
        return qs

    @extend_schema(
        parameters=[OpenApiParameter("unread", bool, description="Only unread notifications")],
        tags=["Notifications"],
    )
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    @extend_schema(request=None, responses={200: NotificationSerializer}, tags=["Notifications"])
    @action(methods=["post"], detail=True, url_path="mark-read")
    def mark_read(self, request, pk=None):
        try:
            notif = self.get_queryset().get(id=pk)
        except (Notification.DoesNotExist, DjangoValidationError):
            raise NotFoundError("Notification not found")
        if notif.mark_read():
            notif.save(update_fields=["read_at", "updated_at"])
        return Response(NotificationSerializer(notif).data, status=status.HTTP_200_OK)

