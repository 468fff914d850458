"""Bulletin board posts and comments."""

from django.conf import settings
from django.db import models

from access_control.models import AudienceScopedModel


class Post(AudienceScopedModel):
    """A message on the board, global or scoped to one sub-group."""

    audience_flag = "is_global"

    text = models.TextField()
    is_global = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.text[:50]


class Comment(models.Model):
    """Reply to a post; visibility follows the post."""

    post = models.ForeignKey(Post, on_delete=models.CASCADE, related_name="comments")
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="comments"
    )
    text = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.text[:50]


__all__ = ["Post", "Comment"]
