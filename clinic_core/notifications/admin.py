from django.contrib import admin

from clinic_core.notifications.models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("title", "kind", "recipient", "channel", "read_at", "created_at")
    list_filter = ("kind", "channel")
    search_fields = ("title", "recipient__username")
    readonly_fields = ("payload",)
