# clinic_core/completions/api/views.py
from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response

from clinic_core.common.api.pagination import HistoryPagination, paginate
from clinic_core.common.permissions import CompletionPermission
from clinic_core.common.request_meta import RequestMeta
from clinic_core.completions.api.serializers import (
    CompletionCreateSerializer,
    CompletionEventSerializer,
    CompletionListQuerySerializer,
    CompletionUndoSerializer,
)
from clinic_core.completions.selectors import CompletionSelector
from clinic_core.completions.services import CompletionService
from clinic_core.iam.actors import resolve_actor


class PatientCompletionViewSet(viewsets.ViewSet):
    """
    POST /patients/{patient_id}/completions/

    Accepts JSON (with media_upload_id) or multipart with a ``file`` field.
    """
    permission_classes = [CompletionPermission]
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    @extend_schema(request=CompletionCreateSerializer, responses={201: CompletionEventSerializer}, tags=["Completions"])
    def create(self, request, patient_id=None):
        s = CompletionCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = dict(s.validated_data)

        event = CompletionService.record(
            actor=resolve_actor(request.user),
            patient_id=patient_id,
            media_file=data.pop("file", None),
            **data,
        )
        event = CompletionSelector.base_qs().get(id=event.id)
        return Response(CompletionEventSerializer(event, context={"request": request}).data, status=status.HTTP_201_CREATED)


class CompletionEventViewSet(viewsets.ViewSet):
    permission_classes = [CompletionPermission]

    @extend_schema(parameters=[CompletionListQuerySerializer], responses={200: CompletionEventSerializer(many=True)}, tags=["Completions"])
    def list(self, request):
        q = CompletionListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)

        qs = CompletionSelector.list_events(actor=resolve_actor(request.user), params=q.validated_data)
        return paginate(request, qs, CompletionEventSerializer, pagination_class=HistoryPagination)

    @extend_schema(request=CompletionUndoSerializer, responses={200: CompletionEventSerializer}, tags=["Completions"])
    @action(detail=True, methods=["post"])
    def undo(self, request, pk=None):
        s = CompletionUndoSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        CompletionService.undo(
            actor=resolve_actor(request.user),
            event_id=pk,
            reason=s.validated_data.get("reason"),
            meta=RequestMeta.from_request(request),
        )
        event = CompletionSelector.base_qs().get(id=pk)
        return Response(CompletionEventSerializer(event, context={"request": request}).data, status=status.HTTP_200_OK)
