# clinic_core/iam/actors.py
"""
Actor resolution + capability predicates.

Every mutating service receives an ``Actor`` rather than a raw user, and asks
one of the predicates below instead of comparing role strings inline.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Set
from uuid import UUID

# Group/role names (Django auth Group names)
ROLE_ADMIN = "ADMIN"
ROLE_DOCTOR = "DOCTOR"
ROLE_RECEPTION = "RECEPTION"
ROLE_PATIENT = "PATIENT"

ALL_ROLES = (ROLE_ADMIN, ROLE_DOCTOR, ROLE_RECEPTION, ROLE_PATIENT)


class ActorKind:
    ADMIN = "ADMIN"
    CLINICIAN = "CLINICIAN"
    FRONT_DESK = "FRONT_DESK"
    PATIENT = "PATIENT"
    ANONYMOUS = "ANONYMOUS"


STAFF_KINDS = frozenset({ActorKind.ADMIN, ActorKind.CLINICIAN, ActorKind.FRONT_DESK})


@dataclass(frozen=True)
class Actor:
    user_id: int | None
    kind: str
    doctor_id: UUID | None = None
    patient_id: UUID | None = None

    @property
    def is_admin(self) -> bool:
        return self.kind == ActorKind.ADMIN

    @property
    def is_clinician(self) -> bool:
        return self.kind == ActorKind.CLINICIAN

    @property
    def is_front_desk(self) -> bool:
        return self.kind == ActorKind.FRONT_DESK

    @property
    def is_patient(self) -> bool:
        return self.kind == ActorKind.PATIENT

    @property
    def is_staff(self) -> bool:
        return self.kind in STAFF_KINDS


ANONYMOUS = Actor(user_id=None, kind=ActorKind.ANONYMOUS)


def user_roles(user) -> Set[str]:
    """
    Roles from Django groups. Superuser is treated as ADMIN.
    """
    roles: Set[str] = set()

    if not user or not getattr(user, "is_authenticated", False):
        return roles

    if getattr(user, "is_superuser", False):
        roles.add(ROLE_ADMIN)
        return roles

    if hasattr(user, "groups"):
        roles.update(user.groups.values_list("name", flat=True))

    return roles


def resolve_actor(user) -> Actor:
    """
    Map an authenticated user to exactly one Actor.

    Precedence: ADMIN > DOCTOR > RECEPTION > PATIENT. A DOCTOR without a
    Doctor profile (or a PATIENT without a Patient record) resolves to
    ANONYMOUS, so ownership checks can never match a missing id.
    """
    from clinic_core.clinicians.models import Doctor
    from clinic_core.patients.models import Patient

    roles = user_roles(user)
    if not roles:
        return ANONYMOUS

    if ROLE_ADMIN in roles:
        return Actor(user_id=user.id, kind=ActorKind.ADMIN)

    if ROLE_DOCTOR in roles:
        doctor_id = Doctor.objects.filter(user_id=user.id).values_list("id", flat=True).first()
        if doctor_id:
            return Actor(user_id=user.id, kind=ActorKind.CLINICIAN, doctor_id=doctor_id)
        return Actor(user_id=user.id, kind=ActorKind.ANONYMOUS)

    if ROLE_RECEPTION in roles:
        return Actor(user_id=user.id, kind=ActorKind.FRONT_DESK)

    if ROLE_PATIENT in roles:
        patient_id = Patient.objects.filter(user_id=user.id).values_list("id", flat=True).first()
        if patient_id:
            return Actor(user_id=user.id, kind=ActorKind.PATIENT, patient_id=patient_id)

    return Actor(user_id=user.id, kind=ActorKind.ANONYMOUS)


# -----------------------------
# Capability predicates
# -----------------------------

def can_book_appointments(actor: Actor) -> bool:
    return actor.is_staff


def can_manage_appointment(actor: Actor, *, doctor_id: UUID) -> bool:
    """Admin/front desk manage any appointment; clinicians only their own."""
    if actor.is_admin or actor.is_front_desk:
        return True
    return actor.is_clinician and actor.doctor_id == doctor_id


def can_view_appointment(actor: Actor, *, patient_id: UUID) -> bool:
    if actor.is_staff:
        return True
    return actor.is_patient and actor.patient_id == patient_id


def can_create_plan(actor: Actor, *, doctor_id: UUID) -> bool:
    if actor.is_admin:
        return True
    return actor.is_clinician and actor.doctor_id == doctor_id


def can_mutate_plan(actor: Actor, *, plan_doctor_id: UUID) -> bool:
    if actor.is_admin:
        return True
    return actor.is_clinician and actor.doctor_id == plan_doctor_id


def can_view_plan(actor: Actor, *, plan_patient_id: UUID) -> bool:
    if actor.is_staff:
        return True
    return actor.is_patient and actor.patient_id == plan_patient_id


def can_record_completion(actor: Actor, *, patient_id: UUID) -> bool:
    if actor.is_staff:
        return True
    return actor.is_patient and actor.patient_id == patient_id
