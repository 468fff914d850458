"""Serializers for notification records and push subscriptions."""

from datetime import datetime, timezone

from django.contrib.auth import get_user_model
from rest_framework import serializers

from access_control.models import SubGroup
from .models import Notification, PushSubscription

User = get_user_model()


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = ["id", "title", "message", "is_read", "event", "post", "created_at"]
        read_only_fields = fields


class SubscriptionKeysSerializer(serializers.Serializer):
    p256dh = serializers.CharField(max_length=255)
    auth = serializers.CharField(max_length=255)


class PushSubscriptionSerializer(serializers.Serializer):
    """Accepts the browser's ``PushSubscription.toJSON()`` shape."""

    endpoint = serializers.URLField(max_length=2048)
    keys = SubscriptionKeysSerializer()
    expirationTime = serializers.IntegerField(required=False, allow_null=True)

    def create(self, data) -> PushSubscription:
        """Upsert by endpoint; a re-registered endpoint moves to the caller."""
        expiration = data.get("expirationTime")
        subscription, _ = PushSubscription.objects.update_or_create(
            endpoint=data["endpoint"],
            defaults={
                "user": data["user"],
                "p256dh": data["keys"]["p256dh"],
                "auth": data["keys"]["auth"],
                # Browsers report the expiration in milliseconds since the epoch.
                "expires_at": (
                    datetime.fromtimestamp(expiration / 1000, tz=timezone.utc)
                    if expiration
                    else None
                ),
            },
        )
        return subscription


class PushSendSerializer(serializers.Serializer):
    """Administrator broadcast; recipients narrowed by user ids and/or sub-group."""

    title = serializers.CharField(max_length=200)
    message = serializers.CharField()
    url = serializers.CharField(required=False, default="/")
    user_ids = serializers.ListField(child=serializers.UUIDField(), required=False)
    subgroup = serializers.PrimaryKeyRelatedField(
        queryset=SubGroup.objects.all(), required=False, allow_null=True
    )

    def recipients(self):
        data = self.validated_data
        users = User.objects.filter(is_active=True)
        if data.get("user_ids"):
            users = users.filter(pk__in=data["user_ids"])
        if data.get("subgroup") is not None:
            users = users.filter(subgroup=data["subgroup"])
        return users


__all__ = [
    "NotificationSerializer",
    "PushSubscriptionSerializer",
    "PushSendSerializer",
]
