from django.contrib import admin

from clinic_core.uploads.models import Upload


@admin.register(Upload)
class UploadAdmin(admin.ModelAdmin):
    list_display = ("original_name", "patient", "mime_type", "size_bytes", "created_at")
