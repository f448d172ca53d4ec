from django.contrib import admin

from clinic_core.scheduling.models import Appointment


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ("start_at", "end_at", "doctor", "patient", "status")
    list_filter = ("status", "doctor")
    date_hierarchy = "start_at"
    readonly_fields = ("end_at",)
