import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="AuditLogEntry",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("actor_user_id", models.IntegerField(blank=True, db_index=True, null=True)),
                ("entity_type", models.CharField(db_index=True, max_length=64)),
                ("entity_id", models.UUIDField(db_index=True)),
                (
                    "action",
                    models.CharField(
                        choices=[("CANCEL", "Cancel"), ("UNDO", "Undo")],
                        db_index=True,
                        max_length=32,
                    ),
                ),
                ("changes", models.JSONField(blank=True, default=dict)),
                ("occurred_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("ip_address", models.GenericIPAddressField(blank=True, null=True)),
                ("user_agent", models.CharField(blank=True, default="", max_length=512)),
            ],
            options={
                "db_table": "audit_log_entry",
                "ordering": ["-occurred_at"],
                "indexes": [models.Index(fields=["entity_type", "entity_id"], name="audit_entity_idx")],
            },
        ),
    ]
