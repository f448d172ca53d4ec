from django.apps import AppConfig


class CompletionsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "clinic_core.completions"
