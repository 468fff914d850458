"""App configuration for in-app notifications and web push."""

from django.apps import AppConfig


class NotificationsConfig(AppConfig):
    """Notifications app holds notification records, push subscriptions and the fan-out."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "notifications"
