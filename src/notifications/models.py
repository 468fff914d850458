"""In-app notification records and browser push subscriptions."""

from django.conf import settings
from django.db import models


class Notification(models.Model):
    """One member's copy of a notification, optionally linked to its source."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="notifications"
    )
    title = models.CharField(max_length=200)
    message = models.TextField()
    is_read = models.BooleanField(default=False)
    event = models.ForeignKey(
        "events.Event",
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    post = models.ForeignKey(
        "bulletin.Post",
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["user", "is_read"], name="idx_notifications_user_read"),
        ]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"Notification(id={self.id}, user={self.user_id})"


class PushSubscription(models.Model):
    """A browser endpoint registered through the Push API; a member may have several."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="push_subscriptions"
    )
    endpoint = models.TextField(unique=True)
    p256dh = models.CharField(max_length=255)
    auth = models.CharField(max_length=255)
    expires_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.endpoint

    def to_subscription_info(self) -> dict:
        """Shape expected by ``pywebpush.webpush``."""
        return {
            "endpoint": self.endpoint,
            "keys": {"p256dh": self.p256dh, "auth": self.auth},
        }


__all__ = ["Notification", "PushSubscription"]
