# clinic_core/completions/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from clinic_core.completions.models import CompletionEvent


class CompletionEventSerializer(serializers.ModelSerializer):
    therapy_plan_exercise_id = serializers.UUIDField(source="plan_exercise_id", read_only=True)
    therapy_plan_id = serializers.UUIDField(source="plan_exercise.plan_id", read_only=True)
    exercise_id = serializers.UUIDField(source="plan_exercise.exercise_id", read_only=True)
    exercise_name = serializers.CharField(source="plan_exercise.exercise.name", read_only=True)
    media_upload_id = serializers.UUIDField(source="media_id", read_only=True, allow_null=True)
    media_url = serializers.SerializerMethodField()
    state = serializers.CharField(read_only=True)

    class Meta:
        model = CompletionEvent
        fields = [
            "id",
            "therapy_plan_exercise_id",
            "therapy_plan_id",
            "exercise_id",
            "exercise_name",
            "patient_id",
            "completed_at",
            "notes",
            "pain_level",
            "satisfaction",
            "media_upload_id",
            "media_url",
            "state",
            "undone",
            "undone_at",
            "undone_reason",
            "undone_by_user_id",
        ]
        read_only_fields = fields

    def get_media_url(self, obj):
        if not obj.media_id:
            return None
        url = obj.media.file.url
        request = self.context.get("request")
        return request.build_absolute_uri(url) if request else url


class CompletionCreateSerializer(serializers.Serializer):
    therapy_plan_exercise_id = serializers.UUIDField(required=False, allow_null=True)
    exercise_id = serializers.UUIDField(required=False, allow_null=True)
    therapy_plan_id = serializers.UUIDField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    pain_level = serializers.IntegerField(required=False, allow_null=True)
    satisfaction = serializers.IntegerField(required=False, allow_null=True)
    media_upload_id = serializers.UUIDField(required=False, allow_null=True)
    file = serializers.FileField(required=False, allow_null=True, write_only=True)


class CompletionUndoSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class CompletionListQuerySerializer(serializers.Serializer):
    therapy_plan_exercise_id = serializers.UUIDField(required=False)
    patient_id = serializers.UUIDField(required=False)
    start = serializers.DateTimeField(required=False)
    end = serializers.DateTimeField(required=False)
