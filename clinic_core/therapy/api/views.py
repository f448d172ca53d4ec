# clinic_core/therapy/api/views.py
from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from clinic_core.common.api.exceptions import ForbiddenError, NotFoundError
from clinic_core.common.api.pagination import paginate
from clinic_core.common.permissions import TherapyPlanPermission
from clinic_core.iam.actors import can_view_plan, resolve_actor
from clinic_core.therapy.api.serializers import (
    AddExerciseSerializer,
    ReorderSerializer,
    TherapyPlanCreateSerializer,
    TherapyPlanExerciseSerializer,
    TherapyPlanSerializer,
    TherapyPlanVersionSerializer,
    UpdatePlanExerciseSerializer,
)
from clinic_core.therapy.selectors import TherapyPlanSelector
from clinic_core.therapy.services import TherapyPlanService

UUID_PATTERN = r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"


class TherapyPlanViewSet(viewsets.ViewSet):
    permission_classes = [TherapyPlanPermission]

    def _get_object(self, request, pk):
        actor = resolve_actor(request.user)
        try:
            plan = TherapyPlanSelector.get_plan(plan_id=pk)
        except TherapyPlanSelector.NotFound:
            raise NotFoundError("Therapy plan not found")
        if not can_view_plan(actor, plan_patient_id=plan.patient_id):
            raise ForbiddenError("You can only view your own therapy plans.")
        return plan

    def _plan_response(self, pk, *, code=status.HTTP_200_OK) -> Response:
        plan = TherapyPlanSelector.get_plan(plan_id=pk)
        return Response(TherapyPlanSerializer(plan).data, status=code)

    # ----------------------------
    # Reads
    # ----------------------------
    @extend_schema(responses={200: TherapyPlanSerializer(many=True)}, tags=["Therapy plans"])
    def list(self, request):
        qs = TherapyPlanSelector.visible_to(resolve_actor(request.user), params=request.query_params)
        return paginate(request, qs, TherapyPlanSerializer)

    @extend_schema(responses={200: TherapyPlanSerializer}, tags=["Therapy plans"])
    def retrieve(self, request, pk=None):
        return Response(TherapyPlanSerializer(self._get_object(request, pk)).data)

    @extend_schema(responses={200: TherapyPlanVersionSerializer(many=True)}, tags=["Therapy plans"])
    @action(detail=True, methods=["get"])
    def versions(self, request, pk=None):
        plan = self._get_object(request, pk)
        qs = TherapyPlanSelector.versions(plan_id=plan.id)
        return Response(TherapyPlanVersionSerializer(qs, many=True).data)

    # ----------------------------
    # Writes
    # ----------------------------
    @extend_schema(request=TherapyPlanCreateSerializer, responses={201: TherapyPlanSerializer}, tags=["Therapy plans"])
    def create(self, request):
        s = TherapyPlanCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        plan = TherapyPlanService.create_plan(actor=resolve_actor(request.user), **s.validated_data)
        return self._plan_response(plan.id, code=status.HTTP_201_CREATED)

    @extend_schema(request=AddExerciseSerializer, responses={201: TherapyPlanExerciseSerializer}, tags=["Therapy plans"])
    @action(detail=True, methods=["post"], url_path="exercises")
    def add_exercise(self, request, pk=None):
        s = AddExerciseSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        entry = TherapyPlanService.add_exercise(actor=resolve_actor(request.user), plan_id=pk, **s.validated_data)
        return Response(TherapyPlanExerciseSerializer(entry).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=UpdatePlanExerciseSerializer, responses={200: TherapyPlanExerciseSerializer}, tags=["Therapy plans"])
    @action(
        detail=True,
        methods=["patch", "delete"],
        url_path=rf"exercises/(?P<plan_exercise_id>{UUID_PATTERN})",
    )
    def exercise_detail(self, request, pk=None, plan_exercise_id=None):
        actor = resolve_actor(request.user)

        if request.method == "DELETE":
            entry = TherapyPlanService.archive_exercise(actor=actor, plan_id=pk, plan_exercise_id=plan_exercise_id)
            return Response(TherapyPlanExerciseSerializer(entry).data, status=status.HTTP_200_OK)

        s = UpdatePlanExerciseSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        entry = TherapyPlanService.update_exercise(
            actor=actor,
            plan_id=pk,
            plan_exercise_id=plan_exercise_id,
            **s.validated_data,
        )
        return Response(TherapyPlanExerciseSerializer(entry).data, status=status.HTTP_200_OK)

    @extend_schema(request=ReorderSerializer, responses={200: TherapyPlanSerializer}, tags=["Therapy plans"])
    @action(detail=True, methods=["post"], url_path="exercises/reorder")
    def reorder_exercises(self, request, pk=None):
        s = ReorderSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        TherapyPlanService.reorder_exercises(
            actor=resolve_actor(request.user),
            plan_id=pk,
            items=s.validated_data["items"],
        )
        return self._plan_response(pk)
