"""Serializers for calendar events."""

from rest_framework import serializers

from access_control.models import SubGroup
from .models import Event


class EventSerializer(serializers.ModelSerializer):
    subgroup = serializers.PrimaryKeyRelatedField(
        queryset=SubGroup.objects.all(), required=False, allow_null=True
    )
    subgroup_name = serializers.CharField(source="subgroup.name", default=None, read_only=True)
    author = serializers.PrimaryKeyRelatedField(read_only=True)
    author_name = serializers.CharField(source="author.name", read_only=True)

    class Meta:
        """Authorship, birthday link and timestamps are set by the server."""
        model = Event
        fields = [
            "id",
            "title",
            "description",
            "starts_at",
            "is_public",
            "subgroup",
            "subgroup_name",
            "author",
            "author_name",
            "birthday_of",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "author", "birthday_of", "created_at", "updated_at"]


__all__ = ["EventSerializer"]
