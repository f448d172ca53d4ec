# clinic_core/scheduling/rules.py
"""
Pure scheduling rules: business hours and status transitions.
"""
from __future__ import annotations

from datetime import datetime, timedelta

from django.utils import timezone

from clinic_core.common.conf import ClinicPolicy, clinic_policy
from clinic_core.scheduling.models import AppointmentStatus

OUTSIDE_BUSINESS_HOURS = "Outside business hours"
DOCTOR_CONFLICT = "Doctor has a conflicting appointment"

# Manual transitions accepted by update. CANCELLED is reached only through cancel.
ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    AppointmentStatus.SCHEDULED: {AppointmentStatus.IN_PROGRESS, AppointmentStatus.COMPLETED},
    AppointmentStatus.IN_PROGRESS: {AppointmentStatus.COMPLETED},
    AppointmentStatus.COMPLETED: set(),
    AppointmentStatus.CANCELLED: set(),
}


def appointment_end(start_at: datetime, duration_minutes: int) -> datetime:
    return start_at + timedelta(minutes=duration_minutes)


def within_business_hours(
    start_at: datetime,
    duration_minutes: int,
    *,
    policy: ClinicPolicy | None = None,
) -> bool:
    """
    Start hour must be >= opening hour and the end, rounded up to the next
    whole hour, must be <= closing hour. Evaluated on the clinic calendar
    (settings.TIME_ZONE). An appointment running past midnight is rejected.
    """
    policy = policy or clinic_policy()

    if timezone.is_naive(start_at):
        start_at = timezone.make_aware(start_at)

    local_start = timezone.localtime(start_at)
    if local_start.hour < policy.business_start_hour:
        return False

    day_start = local_start.replace(hour=0, minute=0, second=0, microsecond=0)
    closes_at = day_start + timedelta(hours=policy.business_end_hour)
    local_end = local_start + timedelta(minutes=duration_minutes)

    # Any partial hour rounds up, so "end <= close" is the same check.
    return local_end <= closes_at


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, set())
