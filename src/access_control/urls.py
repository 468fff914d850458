"""Routing for sub-group endpoints."""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import SubGroupViewSet

router = DefaultRouter()
router.register(r"subgroups", SubGroupViewSet, basename="subgroup")

urlpatterns = [
    path("", include(router.urls)),
]
