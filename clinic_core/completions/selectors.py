# clinic_core/completions/selectors.py
from __future__ import annotations

from typing import Any

from django.db.models import QuerySet

from clinic_core.completions.models import CompletionEvent
from clinic_core.iam.actors import Actor


class CompletionSelector:
    @staticmethod
    def base_qs() -> QuerySet[CompletionEvent]:
        return CompletionEvent.objects.select_related(
            "plan_exercise__exercise",
            "plan_exercise__plan",
            "patient",
            "media",
        )

    @staticmethod
    def list_events(*, actor: Actor, params: Any) -> QuerySet[CompletionEvent]:
        """
        Filters (already parsed): therapy_plan_exercise_id, patient_id, start, end.
        Patients are pinned to their own history. Newest first.
        """
        qs = CompletionSelector.base_qs()

        if actor.is_patient:
            qs = qs.filter(patient_id=actor.patient_id)
        elif not actor.is_staff:
            return qs.none()

        if params.get("therapy_plan_exercise_id"):
            qs = qs.filter(plan_exercise_id=params["therapy_plan_exercise_id"])
        if params.get("patient_id"):
            qs = qs.filter(patient_id=params["patient_id"])
        if params.get("start"):
            qs = qs.filter(completed_at__gte=params["start"])
        if params.get("end"):
            qs = qs.filter(completed_at__lte=params["end"])

        return qs.order_by("-completed_at")
