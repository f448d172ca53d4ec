# clinic_core/therapy/selectors.py
from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import Prefetch, QuerySet

from clinic_core.iam.actors import Actor
from clinic_core.therapy.models import TherapyPlan, TherapyPlanExercise, TherapyPlanVersion


def active_plan_exercises() -> QuerySet[TherapyPlanExercise]:
    return (
        TherapyPlanExercise.objects.filter(archived=False)
        .select_related("exercise")
        .order_by("order", "created_at")
    )


class TherapyPlanSelector:
    class NotFound(Exception):
        pass

    @staticmethod
    def base_qs() -> QuerySet[TherapyPlan]:
        return TherapyPlan.objects.select_related("patient", "doctor").prefetch_related(
            Prefetch("plan_exercises", queryset=active_plan_exercises(), to_attr="active_exercises")
        )

    @staticmethod
    def get_plan(*, plan_id) -> TherapyPlan:
        try:
            return TherapyPlanSelector.base_qs().get(id=plan_id)
        except (TherapyPlan.DoesNotExist, DjangoValidationError):
            raise TherapyPlanSelector.NotFound()

    @staticmethod
    def visible_to(actor: Actor, *, params=None) -> QuerySet[TherapyPlan]:
        """
        Staff see every plan, patients only their own.
        Optional params: patient_id, doctor_id, status.
        """
        params = params or {}
        qs = TherapyPlanSelector.base_qs()

        if actor.is_patient:
            qs = qs.filter(patient_id=actor.patient_id)
        elif not actor.is_staff:
            return qs.none()

        if params.get("patient_id"):
            qs = qs.filter(patient_id=params.get("patient_id"))
        if params.get("doctor_id"):
            qs = qs.filter(doctor_id=params.get("doctor_id"))
        if params.get("status"):
            qs = qs.filter(status=params.get("status"))

        return qs.order_by("-created_at")

    @staticmethod
    def versions(*, plan_id) -> QuerySet[TherapyPlanVersion]:
        return TherapyPlanVersion.objects.filter(plan_id=plan_id).order_by("version")
