from django.conf import settings
from drf_spectacular.extensions import OpenApiAuthenticationExtension


class ClinicJWTScheme(OpenApiAuthenticationExtension):
    """Documents both transports accepted by CookieOrHeaderJWTAuthentication."""
    target_class = "clinic_core.iam.auth.CookieOrHeaderJWTAuthentication"
    name = ["clinicBearer", "clinicCookie"]

    def get_security_definition(self, auto_schema):
        cookie = settings.SIMPLE_JWT.get("AUTH_COOKIE", "clinic_access")
        return [
            {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"},
            {"type": "apiKey", "in": "cookie", "name": cookie},
        ]
