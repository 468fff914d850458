"""Bulletin board endpoints: paginated posts and their comments."""

import logging

from django.db.models import Count
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.response import Response

from access_control import policy
from access_control.mixins import AudienceScopedViewMixin
from access_control.permissions import AudienceScopedPermission
from core.response import BaseAPIView, BaseViewSet, PagePagination, api_response
from notifications.fanout import notify_new_post, notify_post_author
from .models import Comment, Post
from .serializers import CommentSerializer, PostSerializer

logger = logging.getLogger(__name__)


class PostViewSet(AudienceScopedViewMixin, BaseViewSet):
    """Posts, newest first, paginated with ``?page=&limit=``.

    Any member may post to their own sub-group; a post that omits
    ``subgroup`` goes to the author's sub-group. Global posts and posts to
    other sub-groups are reserved to administrators.
    """

    serializer_class = PostSerializer
    permission_classes = [AudienceScopedPermission]
    pagination_class = PagePagination
    queryset = Post.objects.select_related("subgroup", "author").annotate(
        comment_count=Count("comments")
    ).order_by("-created_at", "-id")

    def perform_create(self, serializer):
        user = self.request.user
        data = serializer.validated_data
        is_global = data.get("is_global", False)
        if "subgroup" not in data and not is_global:
            data["subgroup"] = user.subgroup
        policy.ensure_can_create(user, is_open=is_global, subgroup=data.get("subgroup"))

        post = serializer.save(author=user)
        try:
            notify_new_post(post)
        except Exception:
            logger.exception("Fan-out failed for post %s", post.pk)


class CommentListView(BaseAPIView):
    """Comments of one post; reading and writing both require seeing the post."""

    # noinspection PyMethodMayBeStatic
    def get(self, request, post_id):
        post = _get_visible_post(request.user, post_id)
        comments = post.comments.select_related("author")
        return api_response(CommentSerializer(comments, many=True).data)

    # noinspection PyMethodMayBeStatic
    def post(self, request, post_id):
        post = _get_visible_post(request.user, post_id)
        serializer = CommentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        comment = serializer.save(post=post, author=request.user)
        try:
            notify_post_author(comment)
        except Exception:
            logger.exception("Notifying the author of post %s failed", post.pk)
        return api_response(CommentSerializer(comment).data, status=status.HTTP_201_CREATED)


class CommentDetailView(BaseAPIView):

    # noinspection PyMethodMayBeStatic
    def delete(self, request, post_id, comment_id):
        """Delete a comment as an administrator, its author, or the post's author."""
        post = get_object_or_404(Post, pk=post_id)
        comment = get_object_or_404(Comment.objects.select_related("post"), pk=comment_id)
        if comment.post_id != post.pk:
            raise ValidationError("Comment does not belong to this post.")
        if not policy.can_delete_comment(request.user, comment):
            raise PermissionDenied("Only administrators or the authors can delete this comment.")
        comment.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


def _get_visible_post(user, post_id) -> Post:
    post = get_object_or_404(Post.objects.select_related("subgroup"), pk=post_id)
    policy.ensure_can_view(user, post)
    return post


__all__ = ["PostViewSet", "CommentListView", "CommentDetailView"]
