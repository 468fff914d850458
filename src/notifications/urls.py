"""Routing for notifications and web push."""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import NotificationViewSet, PushSendView, PushSubscriptionView, VapidKeyView

router = SimpleRouter()
router.register(r"notifications", NotificationViewSet, basename="notification")

urlpatterns = [
    path("", include(router.urls)),
    path("push/subscriptions/", PushSubscriptionView.as_view(), name="push-subscriptions"),
    path("push/vapid-key/", VapidKeyView.as_view(), name="push-vapid-key"),
    path("push/send/", PushSendView.as_view(), name="push-send"),
]
