"""App configuration for the bulletin board."""

from django.apps import AppConfig


class BulletinConfig(AppConfig):
    """Bulletin app holds posts ("recados") and their comments."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "bulletin"
