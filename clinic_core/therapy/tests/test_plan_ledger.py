import uuid

import pytest
from rest_framework.exceptions import ValidationError

from clinic_core.common.api.exceptions import ForbiddenError, NotFoundError
from clinic_core.therapy.models import Exercise, TherapyPlanExercise, TherapyPlanVersion
from clinic_core.therapy.services import TherapyPlanService


pytestmark = pytest.mark.django_db


def ledger(plan):
    return list(TherapyPlanVersion.objects.filter(plan=plan).order_by("version").values_list("version", "summary"))


def test_add_archive_reorder_bumps_version_once_each(doctor_actor, plan, plan_exercise, exercise):
    added = TherapyPlanService.add_exercise(actor=doctor_actor, plan_id=plan.id, exercise_id=exercise.id)
    TherapyPlanService.archive_exercise(actor=doctor_actor, plan_id=plan.id, plan_exercise_id=plan_exercise.id)
    TherapyPlanService.reorder_exercises(actor=doctor_actor, plan_id=plan.id, items=[{"id": added.id, "order": 0}])

    plan.refresh_from_db()
    assert plan.version == 4
    assert ledger(plan) == [
        (2, "Exercise added to plan"),
        (3, 'Exercise "Squat" archived from plan'),
        (4, "Reordered exercises"),
    ]
    assert set(TherapyPlanVersion.objects.filter(plan=plan).values_list("author_user_id", flat=True)) == {
        doctor_actor.user_id
    }


def test_add_defaults_to_next_position(doctor_actor, plan, plan_exercise, exercise):
    entry = TherapyPlanService.add_exercise(actor=doctor_actor, plan_id=plan.id, exercise_id=exercise.id)

    assert entry.order == plan_exercise.order + 1
    assert entry.reps is None
    assert entry.sets is None
    assert entry.duration is None


def test_add_first_exercise_starts_at_zero(doctor_actor, plan, exercise):
    entry = TherapyPlanService.add_exercise(actor=doctor_actor, plan_id=plan.id, exercise_id=exercise.id)
    assert entry.order == 0


def test_add_inline_exercise_creates_catalog_entry(doctor_actor, plan):
    entry = TherapyPlanService.add_exercise(
        actor=doctor_actor,
        plan_id=plan.id,
        name="Wall slide",
        description="Back against the wall",
        difficulty="intermediate",
        reps=12,
    )

    catalog = Exercise.objects.get(id=entry.exercise_id)
    assert catalog.name == "Wall slide"
    assert catalog.difficulty == "INTERMEDIATE"
    assert entry.reps == 12


def test_add_requires_exercise_reference(doctor_actor, plan):
    with pytest.raises(ValidationError):
        TherapyPlanService.add_exercise(actor=doctor_actor, plan_id=plan.id)

    plan.refresh_from_db()
    assert plan.version == 1


def test_add_rejects_unknown_difficulty(doctor_actor, plan):
    with pytest.raises(ValidationError):
        TherapyPlanService.add_exercise(actor=doctor_actor, plan_id=plan.id, name="Plank", difficulty="EXPERT")


def test_add_unknown_exercise_is_not_found(doctor_actor, plan):
    with pytest.raises(NotFoundError):
        TherapyPlanService.add_exercise(actor=doctor_actor, plan_id=plan.id, exercise_id=uuid.uuid4())


def test_update_parameters_is_not_versioned(doctor_actor, plan, plan_exercise):
    entry = TherapyPlanService.update_exercise(
        actor=doctor_actor,
        plan_id=plan.id,
        plan_exercise_id=plan_exercise.id,
        reps=15,
        notes="Slow descent",
    )

    plan.refresh_from_db()
    assert entry.reps == 15
    assert entry.notes == "Slow descent"
    assert plan.version == 1
    assert ledger(plan) == []


def test_archive_keeps_row(doctor_actor, plan, plan_exercise):
    TherapyPlanService.archive_exercise(actor=doctor_actor, plan_id=plan.id, plan_exercise_id=plan_exercise.id)

    plan_exercise.refresh_from_db()
    assert plan_exercise.archived is True

    with pytest.raises(NotFoundError):
        TherapyPlanService.archive_exercise(actor=doctor_actor, plan_id=plan.id, plan_exercise_id=plan_exercise.id)

    plan.refresh_from_db()
    assert plan.version == 2


def test_reorder_is_all_or_nothing(doctor_actor, plan, plan_exercise, exercise, other_patient, doctor):
    second = TherapyPlanExercise.objects.create(plan=plan, exercise=exercise, order=1)
    foreign_plan = plan.__class__.objects.create(
        patient=other_patient, doctor=doctor, name="Other", start_date="2031-03-01"
    )
    foreign = TherapyPlanExercise.objects.create(plan=foreign_plan, exercise=exercise, order=0)

    with pytest.raises(NotFoundError):
        TherapyPlanService.reorder_exercises(
            actor=doctor_actor,
            plan_id=plan.id,
            items=[
                {"id": plan_exercise.id, "order": 5},
                {"id": second.id, "order": 6},
                {"id": foreign.id, "order": 7},
            ],
        )

    plan_exercise.refresh_from_db()
    second.refresh_from_db()
    plan.refresh_from_db()
    assert (plan_exercise.order, second.order) == (0, 1)
    assert plan.version == 1
    assert ledger(plan) == []


def test_reorder_rejects_archived_item(doctor_actor, plan, plan_exercise, exercise):
    second = TherapyPlanExercise.objects.create(plan=plan, exercise=exercise, order=1, archived=True)

    with pytest.raises(NotFoundError):
        TherapyPlanService.reorder_exercises(
            actor=doctor_actor,
            plan_id=plan.id,
            items=[{"id": plan_exercise.id, "order": 1}, {"id": second.id, "order": 0}],
        )


def test_reorder_swaps_positions(doctor_actor, plan, plan_exercise, exercise):
    second = TherapyPlanExercise.objects.create(plan=plan, exercise=exercise, order=1)

    result = TherapyPlanService.reorder_exercises(
        actor=doctor_actor,
        plan_id=plan.id,
        items=[{"id": plan_exercise.id, "order": 1}, {"id": second.id, "order": 0}],
    )

    assert [e.id for e in result] == [second.id, plan_exercise.id]


def test_reorder_validation(doctor_actor, plan, plan_exercise, exercise):
    second = TherapyPlanExercise.objects.create(plan=plan, exercise=exercise, order=1)

    with pytest.raises(ValidationError):
        TherapyPlanService.reorder_exercises(actor=doctor_actor, plan_id=plan.id, items=[])

    with pytest.raises(ValidationError):
        TherapyPlanService.reorder_exercises(
            actor=doctor_actor,
            plan_id=plan.id,
            items=[{"id": plan_exercise.id, "order": 2}, {"id": second.id, "order": 2}],
        )

    plan.refresh_from_db()
    assert plan.version == 1


def test_reorder_rejects_order_held_by_unlisted_exercise(doctor_actor, plan, plan_exercise, exercise):
    second = TherapyPlanExercise.objects.create(plan=plan, exercise=exercise, order=1)

    with pytest.raises(ValidationError):
        TherapyPlanService.reorder_exercises(actor=doctor_actor, plan_id=plan.id, items=[{"id": second.id, "order": 0}])

    second.refresh_from_db()
    plan.refresh_from_db()
    assert second.order == 1
    assert plan.version == 1


def test_add_rejects_taken_order(doctor_actor, plan, plan_exercise, exercise):
    with pytest.raises(ValidationError):
        TherapyPlanService.add_exercise(actor=doctor_actor, plan_id=plan.id, exercise_id=exercise.id, order=0)

    plan.refresh_from_db()
    assert plan.version == 1
    assert TherapyPlanExercise.objects.filter(plan=plan).count() == 1


def test_add_may_reuse_order_of_archived_exercise(doctor_actor, plan, plan_exercise, exercise):
    TherapyPlanService.archive_exercise(actor=doctor_actor, plan_id=plan.id, plan_exercise_id=plan_exercise.id)

    entry = TherapyPlanService.add_exercise(actor=doctor_actor, plan_id=plan.id, exercise_id=exercise.id, order=0)

    assert entry.order == 0


def test_only_owner_or_admin_can_edit(other_doctor_actor, admin_actor, patient_actor, plan, exercise):
    with pytest.raises(ForbiddenError):
        TherapyPlanService.add_exercise(actor=other_doctor_actor, plan_id=plan.id, exercise_id=exercise.id)

    with pytest.raises(ForbiddenError):
        TherapyPlanService.add_exercise(actor=patient_actor, plan_id=plan.id, exercise_id=exercise.id)

    TherapyPlanService.add_exercise(actor=admin_actor, plan_id=plan.id, exercise_id=exercise.id)
    plan.refresh_from_db()
    assert plan.version == 2


def test_missing_plan_is_not_found(doctor_actor, exercise):
    with pytest.raises(NotFoundError):
        TherapyPlanService.add_exercise(actor=doctor_actor, plan_id=uuid.uuid4(), exercise_id=exercise.id)


def test_create_plan_defaults_to_clinician(doctor_actor, patient, doctor, other_doctor):
    plan = TherapyPlanService.create_plan(
        actor=doctor_actor,
        patient_id=patient.id,
        name="Shoulder",
        start_date="2031-04-01",
    )
    assert plan.doctor_id == doctor.id
    assert plan.version == 1

    with pytest.raises(ForbiddenError):
        TherapyPlanService.create_plan(
            actor=doctor_actor,
            patient_id=patient.id,
            doctor_id=other_doctor.id,
            name="Not mine",
            start_date="2031-04-01",
        )
