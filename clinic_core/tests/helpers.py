# clinic_core/tests/helpers.py
from datetime import datetime, timedelta, timezone as dt_timezone

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group

from clinic_core.iam.actors import ALL_ROLES

# A fixed weekday well in the future; test settings run the clinic on UTC.
CLINIC_DAY = datetime(2031, 3, 12, tzinfo=dt_timezone.utc)


def at(hour: int, minute: int = 0, *, day_offset: int = 0) -> datetime:
    return CLINIC_DAY + timedelta(days=day_offset, hours=hour, minutes=minute)


def ensure_groups():
    for name in ALL_ROLES:
        Group.objects.get_or_create(name=name)


def make_user(username: str, role: str | None = None, **extra):
    ensure_groups()
    User = get_user_model()
    u = User.objects.create_user(username=username, password="pass123", **extra)
    if role:
        u.groups.add(Group.objects.get(name=role))
    return u
