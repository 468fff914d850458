"""Calendar events."""

from django.conf import settings
from django.db import models

from access_control.models import AudienceScopedModel


class Event(AudienceScopedModel):
    """Calendar entry, public or scoped to one sub-group.

    Birthday entries are generated from a member's ``birth_date`` and point
    back to that member through ``birthday_of``.
    """

    audience_flag = "is_public"

    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    starts_at = models.DateTimeField()
    is_public = models.BooleanField(default=False)
    birthday_of = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="birthday_event",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["starts_at"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.title


__all__ = ["Event"]
