"""App configuration for maintenance commands."""

from django.apps import AppConfig


class ScriptsConfig(AppConfig):
    """Holds the seed and birthday-sync management commands."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "scripts"
