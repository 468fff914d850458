"""Serializers for sub-groups."""

from rest_framework import serializers

from core.exceptions import Conflict
from .models import SubGroup


class SubGroupSerializer(serializers.ModelSerializer):
    """Sub-group payload; the name must be one of the four categories."""

    class Meta:
        model = SubGroup
        fields = ["id", "name", "description", "created_at", "updated_at"]
        read_only_fields = ["id", "created_at", "updated_at"]
        # Uniqueness is reported as 409 by validate_name below.
        extra_kwargs = {"name": {"validators": []}}

    def validate_name(self, value):
        """Reject duplicate names with 409 instead of a field error."""
        qs = SubGroup.objects.filter(name=value)
        if self.instance:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise Conflict("A sub-group with this name already exists.")
        return value


__all__ = ["SubGroupSerializer"]
