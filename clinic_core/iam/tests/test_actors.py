import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group

from clinic_core.iam.actors import (
    ANONYMOUS,
    ROLE_ADMIN,
    ROLE_DOCTOR,
    ROLE_PATIENT,
    ROLE_RECEPTION,
    Actor,
    ActorKind,
    can_create_plan,
    can_manage_appointment,
    can_mutate_plan,
    can_record_completion,
    can_view_plan,
    resolve_actor,
)
from clinic_core.tests.helpers import make_user


pytestmark = pytest.mark.django_db


def test_roles_resolve_to_kinds(admin_actor, doctor_actor, reception_actor, patient_actor, doctor, patient):
    assert admin_actor.kind == ActorKind.ADMIN
    assert doctor_actor.kind == ActorKind.CLINICIAN
    assert doctor_actor.doctor_id == doctor.id
    assert reception_actor.kind == ActorKind.FRONT_DESK
    assert patient_actor.kind == ActorKind.PATIENT
    assert patient_actor.patient_id == patient.id


def test_superuser_is_admin():
    su = get_user_model().objects.create_superuser(username="root", password="x", email="root@clinic.test")
    assert resolve_actor(su).is_admin


def test_highest_role_wins(doctor):
    doctor.user.groups.add(*Group.objects.filter(name__in=[ROLE_RECEPTION, ROLE_PATIENT]))

    actor = resolve_actor(doctor.user)

    assert actor.kind == ActorKind.CLINICIAN


def test_doctor_without_profile_is_anonymous():
    u = make_user("ghost_doc", ROLE_DOCTOR)
    actor = resolve_actor(u)

    assert actor.kind == ActorKind.ANONYMOUS
    assert actor.doctor_id is None
    assert not actor.is_staff


def test_patient_without_record_is_anonymous():
    u = make_user("ghost_pat", ROLE_PATIENT)
    assert resolve_actor(u).kind == ActorKind.ANONYMOUS


def test_user_without_roles_is_anonymous():
    u = make_user("nobody")
    assert resolve_actor(u) == ANONYMOUS


def test_admin_group_wins_over_everything():
    u = make_user("boss", ROLE_ADMIN)
    assert resolve_actor(u).is_admin


class TestPredicates:
    def test_clinician_scope(self, doctor_actor, doctor, other_doctor):
        assert can_manage_appointment(doctor_actor, doctor_id=doctor.id)
        assert not can_manage_appointment(doctor_actor, doctor_id=other_doctor.id)
        assert can_create_plan(doctor_actor, doctor_id=doctor.id)
        assert not can_mutate_plan(doctor_actor, plan_doctor_id=other_doctor.id)

    def test_front_desk_cannot_touch_plans(self, reception_actor, doctor):
        assert can_manage_appointment(reception_actor, doctor_id=doctor.id)
        assert not can_create_plan(reception_actor, doctor_id=doctor.id)
        assert not can_mutate_plan(reception_actor, plan_doctor_id=doctor.id)

    def test_patient_scope(self, patient_actor, patient, other_patient):
        assert can_view_plan(patient_actor, plan_patient_id=patient.id)
        assert not can_view_plan(patient_actor, plan_patient_id=other_patient.id)
        assert can_record_completion(patient_actor, patient_id=patient.id)
        assert not can_record_completion(patient_actor, patient_id=other_patient.id)

    def test_anonymous_gets_nothing(self, patient, doctor):
        nobody = Actor(user_id=99, kind=ActorKind.ANONYMOUS)
        assert not can_record_completion(nobody, patient_id=patient.id)
        assert not can_view_plan(nobody, plan_patient_id=patient.id)
        assert not can_manage_appointment(nobody, doctor_id=doctor.id)
