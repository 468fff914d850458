"""Routing for the bulletin board."""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import CommentDetailView, CommentListView, PostViewSet

router = SimpleRouter()
router.register(r"posts", PostViewSet, basename="post")

urlpatterns = [
    path("", include(router.urls)),
    path("posts/<int:post_id>/comments/", CommentListView.as_view(), name="post-comments"),
    path(
        "posts/<int:post_id>/comments/<int:comment_id>/",
        CommentDetailView.as_view(),
        name="post-comment-detail",
    ),
]
