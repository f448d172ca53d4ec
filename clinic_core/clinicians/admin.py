from django.contrib import admin

from clinic_core.clinicians.models import Doctor


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ("full_name", "specialty", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("full_name",)
