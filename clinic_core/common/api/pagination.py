# clinic_core/common/api/pagination.py
from __future__ import annotations

from typing import Type

from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class DefaultPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = "page_size"
    max_page_size = 200


class HistoryPagination(DefaultPagination):
    """Completion history is charted from large pages."""
    page_size = 100
    max_page_size = 500


def paginate(
    request,
    queryset,
    serializer_class,
    *,
    pagination_class: Type[PageNumberPagination] = DefaultPagination,
) -> Response:
    """
    List responses are always ``{count, next, previous, results}``.
    Serializers get the request in their context.
    """
    paginator = pagination_class()
    page = paginator.paginate_queryset(queryset, request)
    context = {"request": request}
    return paginator.get_paginated_response(serializer_class(page, many=True, context=context).data)
