from rest_framework import serializers

from clinic_core.notifications.models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    is_read = serializers.BooleanField(read_only=True)

    class Meta:
        model = Notification
        fields = ["id", "kind", "title", "body", "payload", "is_read", "read_at", "created_at"]
        read_only_fields = fields
