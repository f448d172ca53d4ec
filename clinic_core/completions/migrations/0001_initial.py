import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("patients", "0001_initial"),
        ("therapy", "0001_initial"),
        ("uploads", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="CompletionEvent",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("completed_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("notes", models.TextField(blank=True, default="")),
                ("pain_level", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("satisfaction", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("recorded_by_user_id", models.IntegerField(blank=True, null=True)),
                ("undone", models.BooleanField(db_index=True, default=False)),
                ("undone_at", models.DateTimeField(blank=True, null=True)),
                ("undone_reason", models.TextField(blank=True, null=True)),
                ("undone_by_user_id", models.IntegerField(blank=True, null=True)),
                (
                    "media",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="completion_events",
                        to="uploads.upload",
                    ),
                ),
                (
                    "patient",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="completion_events",
                        to="patients.patient",
                    ),
                ),
                (
                    "plan_exercise",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="completion_events",
                        to="therapy.therapyplanexercise",
                    ),
                ),
            ],
            options={
                "db_table": "completion_event",
                "ordering": ["-completed_at"],
                "indexes": [
                    models.Index(fields=["patient", "completed_at"], name="completion_patient_at_idx"),
                    models.Index(fields=["plan_exercise", "completed_at"], name="completion_pe_at_idx"),
                ],
            },
        ),
    ]
