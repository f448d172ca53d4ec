from django.contrib import admin

from clinic_core.therapy.models import Exercise, TherapyPlan, TherapyPlanExercise, TherapyPlanVersion


@admin.register(Exercise)
class ExerciseAdmin(admin.ModelAdmin):
    list_display = ("name", "difficulty", "archived")
    list_filter = ("difficulty", "archived")
    search_fields = ("name",)


class TherapyPlanExerciseInline(admin.TabularInline):
    model = TherapyPlanExercise
    extra = 0
    readonly_fields = ("exercise", "order", "archived")
    can_delete = False


@admin.register(TherapyPlan)
class TherapyPlanAdmin(admin.ModelAdmin):
    list_display = ("name", "patient", "doctor", "status", "version", "start_date")
    list_filter = ("status",)
    readonly_fields = ("version",)
    inlines = [TherapyPlanExerciseInline]


@admin.register(TherapyPlanVersion)
class TherapyPlanVersionAdmin(admin.ModelAdmin):
    list_display = ("plan", "version", "summary", "author_user_id", "created_at")
    readonly_fields = ("plan", "version", "summary", "author_user_id", "created_at")

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
