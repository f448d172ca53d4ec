# clinic_core/common/api/exceptions.py

from __future__ import annotations

import logging
import uuid
from typing import Any

from django.core.exceptions import ObjectDoesNotExist
from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import (
    APIException,
    NotAuthenticated,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "Request failed."
SERVER_ERROR_MESSAGE = "Unexpected server error."


def ensure_request_id(request) -> str:
    """
    Return ``request.request_id``, assigning a fresh hex id first if the
    request has none. Used by RequestIdMiddleware and the error handler.
    """
    if request is None:
        return uuid.uuid4().hex
    rid = getattr(request, "request_id", None)
    if not rid:
        rid = uuid.uuid4().hex
        request.request_id = rid
    return rid


def build_error_envelope(*, request=None, code: str, message: str, details: Any = None) -> dict[str, Any]:
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details,
            "request_id": ensure_request_id(request),
        }
    }


# -----------------------------
# Domain errors
# -----------------------------

class NotFoundError(NotFound):
    """Referenced patient, doctor, plan, plan exercise or event does not exist."""
    default_detail = "Not found."
    default_code = "not_found"


class ForbiddenError(PermissionDenied):
    """Actor lacks the capability, or the undo window has passed."""
    default_detail = "You do not have permission to perform this action."
    default_code = "forbidden"


class ConflictError(APIException):
    """Business rule blocks the write, e.g. the doctor is already booked."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict."
    default_code = "conflict"


class AlreadyInTerminalStateError(ConflictError):
    default_detail = "Already in a terminal state."
    default_code = "already_in_terminal_state"


# First match wins; subclasses must come before their bases.
ERROR_CODES: tuple[tuple[type[Exception], str], ...] = (
    (ValidationError, "validation_error"),
    (NotAuthenticated, "not_authenticated"),
    (ForbiddenError, "forbidden"),
    (PermissionDenied, "permission_denied"),
    (NotFound, "not_found"),
    (Http404, "not_found"),
)


def error_code(exc: Exception) -> str:
    for exc_type, code in ERROR_CODES:
        if isinstance(exc, exc_type):
            return code
    if isinstance(exc, APIException):
        return exc.default_code or "api_error"
    return "error"


def split_message(data: Any) -> tuple[str, Any]:
    """
    DRF error payload -> (message, details).

    ``{"detail": m, **rest}`` gives ``(m, rest or None)``; a one-item list
    (non-field ValidationError) gives ``(item, None)``; anything else keeps
    the payload as details under a generic message.
    """
    if isinstance(data, dict) and "detail" in data:
        rest = {k: v for k, v in data.items() if k != "detail"}
        return str(data["detail"]), rest or None
    if isinstance(data, list) and len(data) == 1:
        return str(data[0]), None
    return GENERIC_MESSAGE, data


def api_exception_handler(exc: Exception, context: dict[str, Any]):
    """DRF EXCEPTION_HANDLER: every error leaves the API in the same envelope."""
    request = context.get("request")

    if isinstance(exc, ObjectDoesNotExist):
        exc = NotFoundError(str(exc) or None)
    elif isinstance(exc, DjangoValidationError):
        exc = ValidationError(exc.message_dict if hasattr(exc, "error_dict") else exc.messages)

    response = drf_exception_handler(exc, context)

    if response is None:
        rid = ensure_request_id(request)
        logger.error("Unhandled API error (request_id=%s)", rid, exc_info=exc)
        return Response(
            build_error_envelope(request=request, code="server_error", message=SERVER_ERROR_MESSAGE),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    message, details = split_message(response.data)
    return Response(
        build_error_envelope(request=request, code=error_code(exc), message=message, details=details),
        status=response.status_code,
        headers=response.headers,
    )
