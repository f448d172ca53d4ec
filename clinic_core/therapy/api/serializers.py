# clinic_core/therapy/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from clinic_core.therapy.models import (
    Exercise,
    ExerciseDifficulty,
    TherapyPlan,
    TherapyPlanExercise,
    TherapyPlanStatus,
    TherapyPlanVersion,
)


class ExerciseSerializer(serializers.ModelSerializer):
    class Meta:
        model = Exercise
        fields = ["id", "name", "description", "difficulty"]
        read_only_fields = fields


class TherapyPlanExerciseSerializer(serializers.ModelSerializer):
    exercise = ExerciseSerializer(read_only=True)

    class Meta:
        model = TherapyPlanExercise
        fields = [
            "id",
            "exercise",
            "order",
            "reps",
            "sets",
            "duration",
            "frequency",
            "notes",
            "archived",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class TherapyPlanSerializer(serializers.ModelSerializer):
    patient_name = serializers.CharField(source="patient.full_name", read_only=True)
    doctor_name = serializers.CharField(source="doctor.full_name", read_only=True)
    exercises = serializers.SerializerMethodField()

    class Meta:
        model = TherapyPlan
        fields = [
            "id",
            "patient_id",
            "patient_name",
            "doctor_id",
            "doctor_name",
            "name",
            "description",
            "start_date",
            "end_date",
            "status",
            "version",
            "exercises",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_exercises(self, obj):
        entries = getattr(obj, "active_exercises", None)
        if entries is None:
            entries = obj.plan_exercises.filter(archived=False).select_related("exercise").order_by("order", "created_at")
        return TherapyPlanExerciseSerializer(entries, many=True).data


class TherapyPlanVersionSerializer(serializers.ModelSerializer):
    class Meta:
        model = TherapyPlanVersion
        fields = ["id", "version", "summary", "author_user_id", "created_at"]
        read_only_fields = fields


class TherapyPlanCreateSerializer(serializers.Serializer):
    patient_id = serializers.UUIDField()
    doctor_id = serializers.UUIDField(required=False)
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    start_date = serializers.DateField()
    end_date = serializers.DateField(required=False, allow_null=True)
    status = serializers.ChoiceField(choices=TherapyPlanStatus.choices, required=False, default=TherapyPlanStatus.ACTIVE)


class AddExerciseSerializer(serializers.Serializer):
    exercise_id = serializers.UUIDField(required=False, allow_null=True)
    name = serializers.CharField(required=False, allow_blank=True, max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    difficulty = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    order = serializers.IntegerField(required=False, min_value=0)
    reps = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    sets = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    duration = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    frequency = serializers.CharField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_difficulty(self, value):
        if value in (None, ""):
            return None
        upper = value.strip().upper()
        if upper not in ExerciseDifficulty.values:
            raise serializers.ValidationError(f"Must be one of {', '.join(ExerciseDifficulty.values)}.")
        return upper


class UpdatePlanExerciseSerializer(serializers.Serializer):
    reps = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    sets = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    duration = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    frequency = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ReorderItemSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    order = serializers.IntegerField(min_value=0)


class ReorderSerializer(serializers.Serializer):
    items = ReorderItemSerializer(many=True, allow_empty=True)
