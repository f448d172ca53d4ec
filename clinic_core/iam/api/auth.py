# clinic_core/iam/api/auth.py

from __future__ import annotations

from datetime import timedelta

from django.conf import settings
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer

from clinic_core.iam.actors import resolve_actor
from clinic_core.iam.auth import access_cookie_name
from clinic_core.iam.api.serializers import (
    DetailResponseSerializer,
    LoginRequestSerializer,
    MeResponseSerializer,
)


def refresh_cookie_name() -> str:
    return settings.SIMPLE_JWT.get("AUTH_COOKIE_REFRESH", "clinic_refresh")


class AuthCookies:
    """Writes and clears the access/refresh token pair as HttpOnly cookies."""

    @staticmethod
    def _lifetime(key: str, fallback: timedelta) -> int:
        value = settings.SIMPLE_JWT.get(key, fallback)
        return int(value.total_seconds()) if isinstance(value, timedelta) else int(value)

    @staticmethod
    def attach(response: Response, *, access: str, refresh: str) -> Response:
        cfg = settings.SIMPLE_JWT
        common = {
            "httponly": True,
            "secure": bool(cfg.get("AUTH_COOKIE_SECURE", False)),
            "samesite": cfg.get("AUTH_COOKIE_SAMESITE", "Lax"),
            "path": "/",
        }
        response.set_cookie(
            access_cookie_name(),
            access,
            max_age=AuthCookies._lifetime("ACCESS_TOKEN_LIFETIME", timedelta(minutes=10)),
            **common,
        )
        response.set_cookie(
            refresh_cookie_name(),
            refresh,
            max_age=AuthCookies._lifetime("REFRESH_TOKEN_LIFETIME", timedelta(days=14)),
            **common,
        )
        return response

    @staticmethod
    def clear(response: Response) -> Response:
        for name in (access_cookie_name(), refresh_cookie_name()):
            response.delete_cookie(name, path="/")
        return response


class LoginView(APIView):
    """Username/password login. Tokens are returned only as cookies."""
    permission_classes = [AllowAny]
    authentication_classes: list = []

    @extend_schema(request=LoginRequestSerializer, responses={200: DetailResponseSerializer}, tags=["IAM"])
    def post(self, request):
        tokens = TokenObtainPairSerializer(data=request.data)
        tokens.is_valid(raise_exception=True)

        return AuthCookies.attach(
            Response({"detail": "login ok"}, status=status.HTTP_200_OK),
            access=tokens.validated_data["access"],
            refresh=tokens.validated_data["refresh"],
        )


class RefreshView(APIView):
    """Exchange the refresh cookie for a new access cookie (and rotated refresh)."""
    permission_classes = [AllowAny]
    authentication_classes: list = []

    @extend_schema(request=None, responses={200: DetailResponseSerializer}, tags=["IAM"])
    def post(self, request):
        current = request.COOKIES.get(refresh_cookie_name())
        tokens = TokenRefreshSerializer(data={"refresh": current})
        tokens.is_valid(raise_exception=True)

        return AuthCookies.attach(
            Response({"detail": "refreshed"}, status=status.HTTP_200_OK),
            access=tokens.validated_data["access"],
            refresh=tokens.validated_data.get("refresh", current),
        )


class LogoutView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=None, responses={200: DetailResponseSerializer}, tags=["IAM"])
    def post(self, request):
        return AuthCookies.clear(Response({"detail": "logged out"}, status=status.HTTP_200_OK))


class MeView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(responses={200: MeResponseSerializer}, tags=["IAM"])
    def get(self, request):
        actor = resolve_actor(request.user)
        return Response(
            {
                "id": request.user.id,
                "username": request.user.get_username(),
                "kind": actor.kind,
                "doctor_id": actor.doctor_id,
                "patient_id": actor.patient_id,
            }
        )
