from django.contrib import admin

from clinic_core.completions.models import CompletionEvent


@admin.register(CompletionEvent)
class CompletionEventAdmin(admin.ModelAdmin):
    list_display = ("completed_at", "patient", "plan_exercise", "pain_level", "satisfaction", "undone")
    list_filter = ("undone",)
    readonly_fields = ("undone", "undone_at", "undone_reason", "undone_by_user_id")
