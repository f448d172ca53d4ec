import logging

import pytest
from django.core.exceptions import ObjectDoesNotExist
from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework.exceptions import ValidationError
from rest_framework.test import APIRequestFactory

from clinic_core.common.api.exceptions import (
    AlreadyInTerminalStateError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    api_exception_handler,
)


def handle(exc, request=None):
    return api_exception_handler(exc, {"request": request, "view": None})


@pytest.mark.parametrize(
    "exc,status_code,code",
    [
        (ValidationError({"start_at": ["Required."]}), 400, "validation_error"),
        (ForbiddenError(), 403, "forbidden"),
        (NotFoundError("Doctor not found"), 404, "not_found"),
        (Http404(), 404, "not_found"),
        (ConflictError("Doctor has a conflicting appointment"), 409, "conflict"),
        (AlreadyInTerminalStateError(), 409, "already_in_terminal_state"),
    ],
)
def test_domain_errors_map_to_codes(exc, status_code, code):
    res = handle(exc)

    assert res.status_code == status_code
    assert res.data["error"]["code"] == code
    assert res.data["error"]["request_id"]


def test_detail_becomes_message():
    res = handle(NotFoundError("Doctor not found"))

    assert res.data["error"]["message"] == "Doctor not found"
    assert res.data["error"]["details"] is None


def test_single_message_validation_error_is_flattened():
    res = handle(ValidationError("Outside business hours"))

    assert res.data["error"]["message"] == "Outside business hours"
    assert res.data["error"]["details"] is None


def test_field_errors_stay_in_details():
    res = handle(ValidationError({"reason": ["A reason is required to undo a completion."]}))

    assert res.data["error"]["message"] == "Request failed."
    assert res.data["error"]["details"] == {"reason": ["A reason is required to undo a completion."]}


def test_orm_miss_is_not_found():
    res = handle(ObjectDoesNotExist("Appointment matching query does not exist."))

    assert res.status_code == 404
    assert res.data["error"]["code"] == "not_found"


def test_unhandled_error_is_logged_and_hidden(caplog):
    request = APIRequestFactory().get("/api/v1/appointments/")
    request.request_id = "req-123"

    with caplog.at_level(logging.ERROR, logger="clinic_core.common.api.exceptions"):
        res = handle(RuntimeError("db password is hunter2"), request)

    assert res.status_code == 500
    assert res.data["error"]["code"] == "server_error"
    assert res.data["error"]["message"] == "Unexpected server error."
    assert res.data["error"]["request_id"] == "req-123"
    assert "hunter2" not in str(res.data)
    assert "req-123" in caplog.text


@pytest.mark.django_db
def test_request_id_is_echoed_and_reported(patient_client):
    res = patient_client.post(
        "/api/v1/completion-events/00000000-0000-0000-0000-000000000000/undo/",
        {},
        format="json",
        HTTP_X_REQUEST_ID="trace-42",
    )

    assert res.status_code == 404
    assert res["X-Request-Id"] == "trace-42"
    assert res.data["error"]["request_id"] == "trace-42"


def test_django_validation_error_is_400():
    res = handle(DjangoValidationError("abc is not a valid UUID."))

    assert res.status_code == 400
    assert res.data["error"]["code"] == "validation_error"


@pytest.mark.django_db
def test_malformed_id_in_path_is_not_found(api_client):
    res = api_client.get("/api/v1/appointments/not-a-uuid/")

    assert res.status_code == 404
    assert res.data["error"]["code"] == "not_found"
