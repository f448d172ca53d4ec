# clinic_core/common/permissions.py

from __future__ import annotations

from rest_framework.permissions import BasePermission, SAFE_METHODS

from clinic_core.iam.actors import (
    ROLE_ADMIN,
    ROLE_DOCTOR,
    ROLE_PATIENT,
    ROLE_RECEPTION,
    user_roles,
)

STAFF = {ROLE_ADMIN, ROLE_DOCTOR, ROLE_RECEPTION}
EVERYONE = STAFF | {ROLE_PATIENT}


class BaseRolePermission(BasePermission):
    """
    Coarse role gate per ViewSet action.

    Ownership rules (own appointment, own plan, own completion) are object
    level and live in the services; this only keeps roles out of endpoints
    they can never use.
    """
    message = "You do not have permission to perform this action."

    allowed_roles_per_action: dict[str, set[str]] = {
        "list": EVERYONE,
        "retrieve": EVERYONE,
        "create": {ROLE_ADMIN},
        "partial_update": {ROLE_ADMIN},
        "destroy": {ROLE_ADMIN},
    }

    def has_permission(self, request, view) -> bool:
        user = request.user
        if not user or not getattr(user, "is_authenticated", False):
            return False

        roles = user_roles(user)
        if ROLE_ADMIN in roles:
            return True

        action = getattr(view, "action", None)
        allowed = self.allowed_roles_per_action.get(action)

        if allowed is None and request.method in SAFE_METHODS:
            allowed = self.allowed_roles_per_action.get("list")

        if allowed is not None:
            return bool(roles & allowed)

        # Unknown action => deny
        return False


class AppointmentPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": EVERYONE,
        "retrieve": EVERYONE,
        "calendar": EVERYONE,
        "availability": STAFF,
        "create": STAFF,
        "partial_update": STAFF,
        "cancel": STAFF,
    }


class TherapyPlanPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": EVERYONE,
        "retrieve": EVERYONE,
        "versions": EVERYONE,
        "create": {ROLE_ADMIN, ROLE_DOCTOR},
        "add_exercise": {ROLE_ADMIN, ROLE_DOCTOR},
        "exercise_detail": {ROLE_ADMIN, ROLE_DOCTOR},
        "reorder_exercises": {ROLE_ADMIN, ROLE_DOCTOR},
    }


class CompletionPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": EVERYONE,
        "retrieve": EVERYONE,
        "create": EVERYONE,
        "undo": EVERYONE,
    }
