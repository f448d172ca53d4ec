# clinic_core/common/conf.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured


@dataclass(frozen=True)
class ClinicPolicy:
    business_start_hour: int
    business_end_hour: int
    default_appointment_minutes: int
    patient_undo_window: timedelta
    notify_by_email: bool


def clinic_policy() -> ClinicPolicy:
    """
    Read the CLINIC settings block. Evaluated on every call so tests can
    override settings per-case.
    """
    cfg = getattr(settings, "CLINIC", {}) or {}

    start = int(cfg.get("BUSINESS_START_HOUR", 8))
    end = int(cfg.get("BUSINESS_END_HOUR", 18))
    if not (0 <= start < end <= 24):
        raise ImproperlyConfigured(
            f"CLINIC business hours must satisfy 0 <= start < end <= 24 (got {start}..{end})."
        )

    minutes = int(cfg.get("DEFAULT_APPOINTMENT_MINUTES", 60))
    if minutes <= 0:
        raise ImproperlyConfigured("CLINIC DEFAULT_APPOINTMENT_MINUTES must be positive.")

    return ClinicPolicy(
        business_start_hour=start,
        business_end_hour=end,
        default_appointment_minutes=minutes,
        patient_undo_window=timedelta(seconds=int(cfg.get("PATIENT_UNDO_WINDOW_SECONDS", 300))),
        notify_by_email=bool(cfg.get("NOTIFY_BY_EMAIL", True)),
    )
