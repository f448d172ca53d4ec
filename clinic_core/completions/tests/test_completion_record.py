import uuid

import pytest
from django.core import mail
from django.core.files.uploadedfile import SimpleUploadedFile
from rest_framework.exceptions import ValidationError

from clinic_core.common.api.exceptions import ForbiddenError, NotFoundError
from clinic_core.completions.models import CompletionEvent
from clinic_core.completions.services import CompletionService
from clinic_core.notifications.models import Notification, NotificationChannel, NotificationKind
from clinic_core.notifications.services import NotificationService
from clinic_core.patients.models import Patient
from clinic_core.therapy.models import TherapyPlan, TherapyPlanExercise
from clinic_core.uploads.models import Upload


pytestmark = pytest.mark.django_db


def test_patient_records_own_completion(patient_actor, patient, plan_exercise):
    event = CompletionService.record(
        actor=patient_actor,
        patient_id=patient.id,
        therapy_plan_exercise_id=plan_exercise.id,
        pain_level=3,
        satisfaction=4,
        notes="Felt fine",
    )

    assert event.plan_exercise_id == plan_exercise.id
    assert event.patient_id == patient.id
    assert event.undone is False
    assert event.state == "RECORDED"
    assert event.recorded_by_user_id == patient_actor.user_id


def test_target_resolved_from_exercise_and_plan(patient_actor, patient, plan, plan_exercise, exercise):
    event = CompletionService.record(
        actor=patient_actor,
        patient_id=patient.id,
        exercise_id=exercise.id,
        therapy_plan_id=plan.id,
    )
    assert event.plan_exercise_id == plan_exercise.id


def test_target_reference_is_required(patient_actor, patient):
    with pytest.raises(ValidationError):
        CompletionService.record(actor=patient_actor, patient_id=patient.id)


def test_archived_target_is_not_found(patient_actor, patient, plan_exercise):
    TherapyPlanExercise.objects.filter(id=plan_exercise.id).update(archived=True)

    with pytest.raises(NotFoundError):
        CompletionService.record(
            actor=patient_actor,
            patient_id=patient.id,
            therapy_plan_exercise_id=plan_exercise.id,
        )


def test_patient_cannot_record_for_someone_else(other_patient_actor, patient, plan_exercise):
    with pytest.raises(ForbiddenError):
        CompletionService.record(
            actor=other_patient_actor,
            patient_id=patient.id,
            therapy_plan_exercise_id=plan_exercise.id,
        )


def test_staff_records_on_behalf_of_patient(reception_actor, patient, plan_exercise):
    event = CompletionService.record(
        actor=reception_actor,
        patient_id=patient.id,
        therapy_plan_exercise_id=plan_exercise.id,
    )
    assert event.recorded_by_user_id == reception_actor.user_id


def test_target_must_belong_to_claimed_patient(admin_actor, other_patient, doctor, exercise):
    foreign_plan = TherapyPlan.objects.create(patient=other_patient, doctor=doctor, name="B", start_date="2031-03-01")
    entry = TherapyPlanExercise.objects.create(plan=foreign_plan, exercise=exercise)

    someone = Patient.objects.create(full_name="Walk-in", mrn="MRN-WALKIN")

    with pytest.raises(ForbiddenError):
        CompletionService.record(actor=admin_actor, patient_id=someone.id, therapy_plan_exercise_id=entry.id)


def test_unknown_patient(admin_actor, plan_exercise):
    with pytest.raises(NotFoundError):
        CompletionService.record(actor=admin_actor, patient_id=uuid.uuid4(), therapy_plan_exercise_id=plan_exercise.id)


@pytest.mark.parametrize(
    "field,value",
    [("pain_level", -1), ("pain_level", 11), ("satisfaction", 0), ("satisfaction", 6)],
)
def test_feedback_bounds(patient_actor, patient, plan_exercise, field, value):
    with pytest.raises(ValidationError):
        CompletionService.record(
            actor=patient_actor,
            patient_id=patient.id,
            therapy_plan_exercise_id=plan_exercise.id,
            **{field: value},
        )
    assert CompletionEvent.objects.count() == 0


def test_feedback_bounds_are_inclusive(patient_actor, patient, plan_exercise):
    event = CompletionService.record(
        actor=patient_actor,
        patient_id=patient.id,
        therapy_plan_exercise_id=plan_exercise.id,
        pain_level=10,
        satisfaction=1,
    )
    assert (event.pain_level, event.satisfaction) == (10, 1)


def test_clinician_is_notified_after_commit(
    django_capture_on_commit_callbacks, patient_actor, patient, plan_exercise, doctor
):
    with django_capture_on_commit_callbacks(execute=True):
        CompletionService.record(
            actor=patient_actor,
            patient_id=patient.id,
            therapy_plan_exercise_id=plan_exercise.id,
            pain_level=2,
            notes="Easy",
        )

    notif = Notification.objects.get(recipient=doctor.user, channel=NotificationChannel.IN_APP)
    assert notif.title == "Exercise Completed"
    assert notif.kind == NotificationKind.EXERCISE_COMPLETED
    assert notif.payload["therapy_plan_exercise_id"] == str(plan_exercise.id)
    assert notif.body == 'Patient Test Patient completed "Squat" today.\nPain Level: 2/10 | Notes: Easy'
    assert len(mail.outbox) == 1
    assert mail.outbox[0].to == ["lee@clinic.test"]


def test_email_copy_can_be_disabled(settings, django_capture_on_commit_callbacks, patient_actor, patient, plan_exercise):
    settings.CLINIC = {**settings.CLINIC, "NOTIFY_BY_EMAIL": False}

    with django_capture_on_commit_callbacks(execute=True):
        CompletionService.record(actor=patient_actor, patient_id=patient.id, therapy_plan_exercise_id=plan_exercise.id)

    assert Notification.objects.count() == 1
    assert mail.outbox == []


def test_notification_failure_does_not_lose_the_event(
    monkeypatch, django_capture_on_commit_callbacks, patient_actor, patient, plan_exercise
):
    def boom(**kwargs):
        raise RuntimeError("mail relay down")

    monkeypatch.setattr(NotificationService, "notify_user", staticmethod(boom))

    with django_capture_on_commit_callbacks(execute=True):
        event = CompletionService.record(
            actor=patient_actor,
            patient_id=patient.id,
            therapy_plan_exercise_id=plan_exercise.id,
        )

    assert CompletionEvent.objects.filter(id=event.id).exists()
    assert Notification.objects.count() == 0


def test_media_file_is_stored_for_patient(settings, tmp_path, patient_actor, patient, plan_exercise):
    settings.MEDIA_ROOT = str(tmp_path)
    video = SimpleUploadedFile("set1.mp4", b"\x00\x00\x00\x18ftypmp42", content_type="video/mp4")

    event = CompletionService.record(
        actor=patient_actor,
        patient_id=patient.id,
        therapy_plan_exercise_id=plan_exercise.id,
        media_file=video,
    )

    upload = Upload.objects.get(id=event.media_id)
    assert upload.patient_id == patient.id
    assert upload.mime_type == "video/mp4"


def test_media_reference_must_belong_to_patient(settings, tmp_path, patient_actor, patient, other_patient, plan_exercise):
    settings.MEDIA_ROOT = str(tmp_path)
    upload = Upload.objects.create(
        patient=other_patient,
        file=SimpleUploadedFile("x.jpg", b"jpg", content_type="image/jpeg"),
        mime_type="image/jpeg",
        size_bytes=3,
    )

    with pytest.raises(NotFoundError):
        CompletionService.record(
            actor=patient_actor,
            patient_id=patient.id,
            therapy_plan_exercise_id=plan_exercise.id,
            media_upload_id=upload.id,
        )


def test_non_media_file_is_rejected(patient_actor, patient, plan_exercise):
    doc = SimpleUploadedFile("notes.txt", b"hello", content_type="text/plain")

    with pytest.raises(ValidationError):
        CompletionService.record(
            actor=patient_actor,
            patient_id=patient.id,
            therapy_plan_exercise_id=plan_exercise.id,
            media_file=doc,
        )
