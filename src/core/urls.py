"""Root URL configuration for the lodge agenda API."""
from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView

urlpatterns = [
    path("admin/", admin.site.urls),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("auth/", include("authentication.urls")),
    path("", include("authentication.user_urls")),
    path("", include("access_control.urls")),
    path("", include("events.urls")),
    path("", include("bulletin.urls")),
    path("", include("notifications.urls")),
]
