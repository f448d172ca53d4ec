from __future__ import annotations

from dataclasses import dataclass

from django.core.exceptions import ValidationError
from django.core.validators import validate_ipv46_address


@dataclass(frozen=True)
class RequestMeta:
    """Client details captured for audit entries."""
    ip_address: str | None = None
    user_agent: str | None = None

    @classmethod
    def from_request(cls, request) -> "RequestMeta":
        if request is None:
            return cls()
        return cls(
            ip_address=get_client_ip(request),
            user_agent=(request.META.get("HTTP_USER_AGENT") or None),
        )


def _valid_ip(value):
    value = (value or "").strip()
    if not value:
        return None
    try:
        validate_ipv46_address(value)
    except ValidationError:
        return None
    return value


def get_client_ip(request):
    """
    First X-Forwarded-For hop, else REMOTE_ADDR. Values that are not an
    IPv4/IPv6 address are skipped so they never reach the audit ``inet`` column.
    """
    if not request:
        return None

    x_forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")
    if x_forwarded_for:
        ip = _valid_ip(x_forwarded_for.split(",")[0])
        if ip:
            return ip

    return _valid_ip(request.META.get("REMOTE_ADDR"))
