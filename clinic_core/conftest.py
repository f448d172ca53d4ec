# clinic_core/conftest.py
import pytest
from rest_framework.test import APIClient

from clinic_core.clinicians.models import Doctor
from clinic_core.iam.actors import (
    ROLE_ADMIN,
    ROLE_DOCTOR,
    ROLE_PATIENT,
    ROLE_RECEPTION,
    resolve_actor,
)
from clinic_core.patients.models import Patient
from clinic_core.tests.helpers import make_user
from clinic_core.therapy.models import Exercise, TherapyPlan, TherapyPlanExercise


def client_for(user):
    c = APIClient()
    c.force_authenticate(user=user)
    return c


# ----------------------------
# Users / profiles
# ----------------------------
@pytest.fixture
def user(db):
    return make_user("admin", ROLE_ADMIN)


@pytest.fixture
def doctor(db):
    u = make_user("dr_lee", ROLE_DOCTOR, email="lee@clinic.test")
    return Doctor.objects.create(user=u, full_name="Dr. Lee", specialty="Physiotherapy")


@pytest.fixture
def other_doctor(db):
    u = make_user("dr_khan", ROLE_DOCTOR, email="khan@clinic.test")
    return Doctor.objects.create(user=u, full_name="Dr. Khan")


@pytest.fixture
def reception_user(db):
    return make_user("frontdesk", ROLE_RECEPTION)


@pytest.fixture
def patient(db):
    u = make_user("pat_one", ROLE_PATIENT)
    return Patient.objects.create(user=u, full_name="Test Patient", mrn="MRN-TEST-001")


@pytest.fixture
def other_patient(db):
    u = make_user("pat_two", ROLE_PATIENT)
    return Patient.objects.create(user=u, full_name="Other Patient", mrn="MRN-TEST-002")


# ----------------------------
# Actors
# ----------------------------
@pytest.fixture
def admin_actor(user):
    return resolve_actor(user)


@pytest.fixture
def doctor_actor(doctor):
    return resolve_actor(doctor.user)


@pytest.fixture
def other_doctor_actor(other_doctor):
    return resolve_actor(other_doctor.user)


@pytest.fixture
def reception_actor(reception_user):
    return resolve_actor(reception_user)


@pytest.fixture
def patient_actor(patient):
    return resolve_actor(patient.user)


@pytest.fixture
def other_patient_actor(other_patient):
    return resolve_actor(other_patient.user)


# ----------------------------
# API clients
# ----------------------------
@pytest.fixture
def api_client(user):
    return client_for(user)


@pytest.fixture
def doctor_client(doctor):
    return client_for(doctor.user)


@pytest.fixture
def other_doctor_client(other_doctor):
    return client_for(other_doctor.user)


@pytest.fixture
def reception_client(reception_user):
    return client_for(reception_user)


@pytest.fixture
def patient_client(patient):
    return client_for(patient.user)


# ----------------------------
# Therapy
# ----------------------------
@pytest.fixture
def plan(db, patient, doctor):
    return TherapyPlan.objects.create(
        patient=patient,
        doctor=doctor,
        name="Knee rehab",
        start_date="2031-03-01",
    )


@pytest.fixture
def exercise(db):
    return Exercise.objects.create(name="Squat", difficulty="BEGINNER")


@pytest.fixture
def plan_exercise(plan, exercise):
    return TherapyPlanExercise.objects.create(plan=plan, exercise=exercise, order=0, reps=10, sets=3)
