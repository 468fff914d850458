"""Notification inbox and web push endpoints."""

import logging

from django.conf import settings
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.response import Response

from access_control.permissions import IsAdministrator, IsRecipient
from core.exceptions import PushUnavailable
from core.response import BaseAPIView, BaseReadOnlyViewSet, api_response
from . import webpush
from .fanout import send_to_users
from .models import Notification, PushSubscription
from .serializers import NotificationSerializer, PushSendSerializer, PushSubscriptionSerializer

logger = logging.getLogger(__name__)


class NotificationViewSet(BaseReadOnlyViewSet):
    """The caller's own notifications, newest first."""

    serializer_class = NotificationSerializer
    permission_classes = [IsRecipient]
    queryset = Notification.objects.all()

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action in ("list", "read_all"):
            queryset = queryset.filter(user=self.request.user)
        return queryset

    @action(detail=True, methods=["post"])
    def read(self, request, pk=None):
        """Mark one notification as read."""
        notification = self.get_object()
        if not notification.is_read:
            notification.is_read = True
            notification.save(update_fields=["is_read"])
        return api_response(self.get_serializer(notification).data)

    @action(detail=False, methods=["post"], url_path="read-all")
    def read_all(self, request):
        """Mark every unread notification of the caller as read."""
        updated = self.get_queryset().filter(is_read=False).update(is_read=True)
        return api_response({"updated": updated})


class PushSubscriptionView(BaseAPIView):

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Register (or re-register) a browser push subscription."""
        serializer = PushSubscriptionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        subscription = serializer.save(user=request.user)
        return api_response({"endpoint": subscription.endpoint}, status=status.HTTP_201_CREATED)

    # noinspection PyMethodMayBeStatic
    def delete(self, request):
        """Remove the subscription named by ``?endpoint=``; owners only."""
        endpoint = request.query_params.get("endpoint")
        if not endpoint:
            raise ValidationError({"endpoint": ["This query parameter is required."]})
        subscription = get_object_or_404(PushSubscription, endpoint=endpoint)
        if subscription.user_id != request.user.pk:
            raise PermissionDenied("You cannot remove another member's subscription.")
        subscription.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


class VapidKeyView(BaseAPIView):

    # noinspection PyMethodMayBeStatic
    def get(self, request):
        """Public VAPID key for the browser, or null when push is disabled."""
        key = settings.VAPID_PUBLIC_KEY if webpush.is_configured() else None
        return api_response({"public_key": key})


class PushSendView(BaseAPIView):
    permission_classes = [IsAdministrator]

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Broadcast a push message to selected members."""
        if not webpush.is_configured():
            raise PushUnavailable()
        serializer = PushSendSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = send_to_users(
            serializer.recipients().values_list("pk", flat=True),
            data["title"],
            data["message"],
            data["url"],
        )
        logger.info("User %s sent a push broadcast", request.user.pk)
        return api_response(
            {"sent": result.push_sent, "failed": result.push_failed, "expired": result.push_expired}
        )


__all__ = ["NotificationViewSet", "PushSubscriptionView", "VapidKeyView", "PushSendView"]
