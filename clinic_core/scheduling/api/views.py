# clinic_core/scheduling/api/views.py
from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from clinic_core.common.api.exceptions import ForbiddenError, NotFoundError
from clinic_core.common.api.pagination import paginate
from clinic_core.common.permissions import AppointmentPermission
from clinic_core.common.request_meta import RequestMeta
from clinic_core.iam.actors import can_view_appointment, resolve_actor
from clinic_core.scheduling.api.serializers import (
    AppointmentCancelSerializer,
    AppointmentCreateSerializer,
    AppointmentSerializer,
    AppointmentUpdateSerializer,
    AvailabilityQuerySerializer,
    AvailabilityResponseSerializer,
    CalendarQuerySerializer,
)
from clinic_core.scheduling.filters import AppointmentFilter
from clinic_core.scheduling.selectors import AppointmentSelector
from clinic_core.scheduling.services import AppointmentService


class AppointmentViewSet(viewsets.ViewSet):
    """
    Thin API layer:
    - request parsing via serializers
    - calls selectors for reads
    - calls AppointmentService for writes
    """

    permission_classes = [AppointmentPermission]

    def _get_object(self, request, pk):
        actor = resolve_actor(request.user)
        try:
            appt = AppointmentSelector.get_appointment(appointment_id=pk)
        except AppointmentSelector.NotFound:
            raise NotFoundError("Appointment not found")
        if not can_view_appointment(actor, patient_id=appt.patient_id):
            raise ForbiddenError("You can only view your own appointments.")
        return appt

    # ----------------------------
    # Reads
    # ----------------------------
    @extend_schema(responses={200: AppointmentSerializer(many=True)}, tags=["Appointments"])
    def list(self, request):
        actor = resolve_actor(request.user)
        qs = AppointmentSelector.visible_to(actor).order_by("start_at")
        qs = AppointmentFilter(request.query_params, queryset=qs).qs
        return paginate(request, qs, AppointmentSerializer)

    @extend_schema(responses={200: AppointmentSerializer}, tags=["Appointments"])
    def retrieve(self, request, pk=None):
        return Response(AppointmentSerializer(self._get_object(request, pk)).data)

    @extend_schema(parameters=[CalendarQuerySerializer], responses={200: AppointmentSerializer(many=True)}, tags=["Appointments"])
    @action(detail=False, methods=["get"])
    def calendar(self, request):
        q = CalendarQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        data = q.validated_data

        qs = AppointmentSelector.calendar(
            actor=resolve_actor(request.user),
            start=data["start"],
            end=data["end"],
            doctor_id=data.get("doctor_id"),
            patient_id=data.get("patient_id"),
        )
        return Response(
            {
                "start": data["start"],
                "end": data["end"],
                "appointments": AppointmentSerializer(qs, many=True).data,
            }
        )

    @extend_schema(parameters=[AvailabilityQuerySerializer], responses={200: AvailabilityResponseSerializer}, tags=["Appointments"])
    @action(detail=False, methods=["get"])
    def availability(self, request):
        q = AvailabilityQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)

        result = AppointmentService.check_slot(**q.validated_data)
        return Response({"accepted": result.accepted, "reason": result.reason})

    # ----------------------------
    # Writes
    # ----------------------------
    @extend_schema(request=AppointmentCreateSerializer, responses={201: AppointmentSerializer}, tags=["Appointments"])
    def create(self, request):
        s = AppointmentCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        appt = AppointmentService.create(actor=resolve_actor(request.user), **s.validated_data)
        appt = AppointmentSelector.get_appointment(appointment_id=appt.id)
        return Response(AppointmentSerializer(appt).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=AppointmentUpdateSerializer, responses={200: AppointmentSerializer}, tags=["Appointments"])
    def partial_update(self, request, pk=None):
        s = AppointmentUpdateSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)

        AppointmentService.update(actor=resolve_actor(request.user), appointment_id=pk, **s.validated_data)
        appt = AppointmentSelector.get_appointment(appointment_id=pk)
        return Response(AppointmentSerializer(appt).data, status=status.HTTP_200_OK)

    @extend_schema(request=AppointmentCancelSerializer, responses={200: AppointmentSerializer}, tags=["Appointments"])
    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        s = AppointmentCancelSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        AppointmentService.cancel(
            actor=resolve_actor(request.user),
            appointment_id=pk,
            reason=s.validated_data.get("reason"),
            meta=RequestMeta.from_request(request),
        )
        appt = AppointmentSelector.get_appointment(appointment_id=pk)
        return Response(AppointmentSerializer(appt).data, status=status.HTTP_200_OK)
