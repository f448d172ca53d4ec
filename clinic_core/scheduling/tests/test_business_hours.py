import pytest
from django.core.exceptions import ImproperlyConfigured

from clinic_core.common.conf import clinic_policy
from clinic_core.scheduling import rules
from clinic_core.tests.helpers import at


def test_morning_slot_inside_hours_is_accepted():
    assert rules.within_business_hours(at(9, 0), 60) is True


def test_slot_ending_exactly_at_close_is_accepted():
    assert rules.within_business_hours(at(17, 0), 60) is True


def test_partial_hour_past_close_is_rejected():
    # 17:30 + 45 min ends 18:15 -> rounds up to 19 > 18
    assert rules.within_business_hours(at(17, 30), 45) is False


def test_opening_hour_boundary():
    assert rules.within_business_hours(at(8, 0), 30) is True
    assert rules.within_business_hours(at(7, 59), 30) is False


def test_slot_running_past_midnight_is_rejected():
    assert rules.within_business_hours(at(17, 0), 8 * 60) is False


def test_hours_follow_settings(settings):
    settings.CLINIC = {**settings.CLINIC, "BUSINESS_START_HOUR": 10, "BUSINESS_END_HOUR": 14}

    assert rules.within_business_hours(at(9, 0), 60) is False
    assert rules.within_business_hours(at(13, 0), 60) is True
    assert rules.within_business_hours(at(13, 30), 45) is False


def test_invalid_hours_config_is_rejected(settings):
    settings.CLINIC = {**settings.CLINIC, "BUSINESS_START_HOUR": 18, "BUSINESS_END_HOUR": 8}

    with pytest.raises(ImproperlyConfigured):
        clinic_policy()


def test_status_transitions():
    assert rules.can_transition("SCHEDULED", "IN_PROGRESS")
    assert rules.can_transition("IN_PROGRESS", "COMPLETED")
    assert not rules.can_transition("COMPLETED", "SCHEDULED")
    assert not rules.can_transition("SCHEDULED", "CANCELLED")
