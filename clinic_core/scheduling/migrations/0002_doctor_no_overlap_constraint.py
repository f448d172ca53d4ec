"""
PostgreSQL-only: forbid overlapping non-cancelled appointments per doctor
at the storage layer. Other backends rely on the row lock in AppointmentService.
"""
from django.db import migrations

CREATE_SQL = [
    "CREATE EXTENSION IF NOT EXISTS btree_gist",
    """
    ALTER TABLE scheduling_appointment
    ADD CONSTRAINT appt_doctor_no_overlap
    EXCLUDE USING gist (
        doctor_id WITH =,
        tstzrange(start_at, end_at, '[)') WITH &&
    )
    WHERE (status <> 'CANCELLED')
    """,
]

DROP_SQL = "ALTER TABLE scheduling_appointment DROP CONSTRAINT IF EXISTS appt_doctor_no_overlap"


def add_constraint(apps, schema_editor):
    if schema_editor.connection.vendor != "postgresql":
        return
    for sql in CREATE_SQL:
        schema_editor.execute(sql)


def drop_constraint(apps, schema_editor):
    if schema_editor.connection.vendor != "postgresql":
        return
    schema_editor.execute(DROP_SQL)


class Migration(migrations.Migration):

    dependencies = [
        ("scheduling", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(add_constraint, drop_constraint),
    ]
