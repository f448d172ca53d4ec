# clinic_core/api/urls.py
from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from clinic_core.completions.api.views import CompletionEventViewSet, PatientCompletionViewSet
from clinic_core.iam.api.auth import LoginView, LogoutView, MeView, RefreshView
from clinic_core.notifications.api.views import NotificationViewSet
from clinic_core.scheduling.api.views import AppointmentViewSet
from clinic_core.therapy.api.views import TherapyPlanViewSet

router = DefaultRouter()

router.register(r"appointments", AppointmentViewSet, basename="appointments")
router.register(r"therapy-plans", TherapyPlanViewSet, basename="therapy-plans")
router.register(r"completion-events", CompletionEventViewSet, basename="completion-events")
router.register(r"notifications", NotificationViewSet, basename="notifications")

urlpatterns = [
    # Auth + /me
    path("auth/login/", LoginView.as_view(), name="login"),
    path("auth/refresh/", RefreshView.as_view(), name="refresh"),
    path("auth/logout/", LogoutView.as_view(), name="logout"),
    path("me/", MeView.as_view(), name="me"),

    path(
        "patients/<uuid:patient_id>/completions/",
        PatientCompletionViewSet.as_view({"post": "create"}),
        name="patient-completions",
    ),

    *router.urls,
]
