"""App configuration for the shared calendar."""

from django.apps import AppConfig


class EventsConfig(AppConfig):
    """Events app holds calendar entries and the birthday sync."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "events"
