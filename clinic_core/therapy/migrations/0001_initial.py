import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("patients", "0001_initial"),
        ("clinicians", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Exercise",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                (
                    "difficulty",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("BEGINNER", "Beginner"),
                            ("INTERMEDIATE", "Intermediate"),
                            ("ADVANCED", "Advanced"),
                        ],
                        max_length=16,
                        null=True,
                    ),
                ),
                ("archived", models.BooleanField(db_index=True, default=False)),
            ],
            options={
                "db_table": "therapy_exercise",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="TherapyPlan",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                ("start_date", models.DateField()),
                ("end_date", models.DateField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("ACTIVE", "Active"), ("COMPLETED", "Completed"), ("ARCHIVED", "Archived")],
                        db_index=True,
                        default="ACTIVE",
                        max_length=16,
                    ),
                ),
                ("version", models.PositiveIntegerField(default=1)),
                (
                    "doctor",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="therapy_plans",
                        to="clinicians.doctor",
                    ),
                ),
                (
                    "patient",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="therapy_plans",
                        to="patients.patient",
                    ),
                ),
            ],
            options={
                "db_table": "therapy_plan",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["patient", "status"], name="plan_patient_status_idx"),
                    models.Index(fields=["doctor", "status"], name="plan_doctor_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="TherapyPlanExercise",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("order", models.PositiveIntegerField(default=0)),
                ("reps", models.PositiveIntegerField(blank=True, null=True)),
                ("sets", models.PositiveIntegerField(blank=True, null=True)),
                ("duration", models.PositiveIntegerField(blank=True, help_text="Seconds per set", null=True)),
                ("frequency", models.CharField(blank=True, default="", max_length=128)),
                ("notes", models.TextField(blank=True, default="")),
                ("archived", models.BooleanField(db_index=True, default=False)),
                (
                    "exercise",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="plan_entries",
                        to="therapy.exercise",
                    ),
                ),
                (
                    "plan",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="plan_exercises",
                        to="therapy.therapyplan",
                    ),
                ),
            ],
            options={
                "db_table": "therapy_plan_exercise",
                "ordering": ["order", "created_at"],
                "indexes": [
                    models.Index(fields=["plan", "archived", "order"], name="plan_ex_plan_order_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="TherapyPlanVersion",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("version", models.PositiveIntegerField()),
                ("summary", models.CharField(max_length=512)),
                ("author_user_id", models.IntegerField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                (
                    "plan",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="versions",
                        to="therapy.therapyplan",
                    ),
                ),
            ],
            options={
                "db_table": "therapy_plan_version",
                "ordering": ["plan", "version"],
                "constraints": [
                    models.UniqueConstraint(fields=("plan", "version"), name="uq_plan_version"),
                ],
            },
        ),
    ]
