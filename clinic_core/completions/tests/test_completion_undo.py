from datetime import timedelta

import pytest
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from clinic_core.audit.models import AuditAction, AuditLogEntry
from clinic_core.audit.services import AuditService
from clinic_core.common.api.exceptions import (
    AlreadyInTerminalStateError,
    ForbiddenError,
    NotFoundError,
)
from clinic_core.common.request_meta import RequestMeta
from clinic_core.completions.models import CompletionEvent
from clinic_core.completions.services import CompletionService
from clinic_core.tests.helpers import at


pytestmark = pytest.mark.django_db

NOW = at(10)


@pytest.fixture
def frozen_now(monkeypatch):
    monkeypatch.setattr(timezone, "now", lambda: NOW)
    return NOW


@pytest.fixture
def event(patient, plan_exercise):
    return CompletionEvent.objects.create(
        plan_exercise=plan_exercise,
        patient=patient,
        completed_at=NOW - timedelta(minutes=1),
        recorded_by_user_id=patient.user_id,
    )


def _age(event, delta):
    CompletionEvent.objects.filter(id=event.id).update(completed_at=NOW - delta)


# ----------------------------
# Patient path
# ----------------------------
@pytest.mark.parametrize("age", [timedelta(minutes=4, seconds=59), timedelta(minutes=5)])
def test_patient_undo_inside_window(frozen_now, patient_actor, event, age):
    _age(event, age)

    undone = CompletionService.undo(actor=patient_actor, event_id=event.id)

    assert undone.undone is True
    assert undone.state == "UNDONE"
    assert undone.undone_at == NOW
    assert undone.undone_reason is None
    assert undone.undone_by_user_id == patient_actor.user_id
    assert AuditLogEntry.objects.count() == 0


def test_patient_undo_after_window_is_forbidden(frozen_now, patient_actor, event):
    _age(event, timedelta(minutes=5, seconds=1))

    with pytest.raises(ForbiddenError):
        CompletionService.undo(actor=patient_actor, event_id=event.id)

    event.refresh_from_db()
    assert event.undone is False


def test_patient_undo_window_follows_settings(settings, frozen_now, patient_actor, event):
    settings.CLINIC = {**settings.CLINIC, "PATIENT_UNDO_WINDOW_SECONDS": 30}
    _age(event, timedelta(seconds=31))

    with pytest.raises(ForbiddenError):
        CompletionService.undo(actor=patient_actor, event_id=event.id)


def test_patient_cannot_undo_someone_elses_event(frozen_now, other_patient_actor, event):
    with pytest.raises(ForbiddenError):
        CompletionService.undo(actor=other_patient_actor, event_id=event.id)


def test_patient_reason_is_ignored(frozen_now, patient_actor, event):
    undone = CompletionService.undo(actor=patient_actor, event_id=event.id, reason="oops")
    assert undone.undone_reason is None


# ----------------------------
# Staff path
# ----------------------------
def test_staff_undo_requires_reason(frozen_now, reception_actor, event):
    for reason in (None, "", "   "):
        with pytest.raises(ValidationError):
            CompletionService.undo(actor=reception_actor, event_id=event.id, reason=reason)

    event.refresh_from_db()
    assert event.undone is False
    assert AuditLogEntry.objects.count() == 0


def test_staff_undo_any_age_writes_one_audit_entry(frozen_now, doctor_actor, event):
    _age(event, timedelta(days=30))
    meta = RequestMeta(ip_address="10.1.2.3", user_agent="pytest")

    undone = CompletionService.undo(
        actor=doctor_actor,
        event_id=event.id,
        reason="  Logged against the wrong exercise  ",
        meta=meta,
    )

    assert undone.undone_reason == "Logged against the wrong exercise"
    assert undone.undone_by_user_id == doctor_actor.user_id

    entry = AuditLogEntry.objects.get()
    assert entry.action == AuditAction.UNDO
    assert entry.entity_type == "CompletionEvent"
    assert entry.entity_id == event.id
    assert entry.actor_user_id == doctor_actor.user_id
    assert entry.ip_address == "10.1.2.3"
    assert entry.user_agent == "pytest"
    assert entry.changes == {
        "undone": {"from": False, "to": True},
        "reason": "Logged against the wrong exercise",
        "undone_at": NOW.isoformat(),
    }


def test_staff_undo_survives_audit_failure(frozen_now, monkeypatch, admin_actor, event):
    def boom(**kwargs):
        raise RuntimeError("audit store unavailable")

    monkeypatch.setattr(AuditService, "log", staticmethod(boom))

    undone = CompletionService.undo(actor=admin_actor, event_id=event.id, reason="Duplicate")

    assert undone.undone is True
    event.refresh_from_db()
    assert event.undone is True
    assert AuditLogEntry.objects.count() == 0


# ----------------------------
# Terminal state
# ----------------------------
def test_second_undo_is_rejected_and_changes_nothing(frozen_now, reception_actor, doctor_actor, event):
    CompletionService.undo(actor=reception_actor, event_id=event.id, reason="First")
    event.refresh_from_db()
    before = (event.undone_at, event.undone_reason, event.undone_by_user_id)

    with pytest.raises(AlreadyInTerminalStateError):
        CompletionService.undo(actor=doctor_actor, event_id=event.id, reason="Second")

    event.refresh_from_db()
    assert (event.undone_at, event.undone_reason, event.undone_by_user_id) == before
    assert AuditLogEntry.objects.count() == 1


def test_patient_second_undo_reports_terminal_state(frozen_now, patient_actor, event):
    CompletionService.undo(actor=patient_actor, event_id=event.id)

    with pytest.raises(AlreadyInTerminalStateError):
        CompletionService.undo(actor=patient_actor, event_id=event.id)


def test_undo_unknown_event(reception_actor):
    with pytest.raises(NotFoundError):
        CompletionService.undo(actor=reception_actor, event_id="00000000-0000-0000-0000-000000000000", reason="x")
