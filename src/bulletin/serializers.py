"""Serializers for posts and comments."""

from rest_framework import serializers

from access_control.models import SubGroup
from .models import Comment, Post


class PostSerializer(serializers.ModelSerializer):
    subgroup = serializers.PrimaryKeyRelatedField(
        queryset=SubGroup.objects.all(), required=False, allow_null=True
    )
    subgroup_name = serializers.CharField(source="subgroup.name", default=None, read_only=True)
    author = serializers.PrimaryKeyRelatedField(read_only=True)
    author_name = serializers.CharField(source="author.name", read_only=True)
    comment_count = serializers.SerializerMethodField()

    class Meta:
        """Authorship and timestamps are set by the server."""
        model = Post
        fields = [
            "id",
            "text",
            "is_global",
            "subgroup",
            "subgroup_name",
            "author",
            "author_name",
            "comment_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "author", "created_at", "updated_at"]

    @staticmethod
    def get_comment_count(obj) -> int:
        # List queries annotate the count; freshly created posts do not.
        count = getattr(obj, "comment_count", None)
        if count is None:
            count = obj.comments.count()
        return count


class CommentSerializer(serializers.ModelSerializer):
    author = serializers.PrimaryKeyRelatedField(read_only=True)
    author_name = serializers.CharField(source="author.name", read_only=True)

    class Meta:
        model = Comment
        fields = ["id", "post", "text", "author", "author_name", "created_at"]
        read_only_fields = ["id", "post", "author", "created_at"]

    def validate_text(self, value):
        if not value.strip():
            raise serializers.ValidationError("Comment text cannot be empty.")
        return value


__all__ = ["PostSerializer", "CommentSerializer"]
