"""Routing for calendar endpoints."""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import BirthdaySyncView, EventViewSet

router = SimpleRouter()
router.register(r"events", EventViewSet, basename="event")

urlpatterns = [
    path("", include(router.urls)),
    path("birthdays/sync/", BirthdaySyncView.as_view(), name="birthday-sync"),
]
