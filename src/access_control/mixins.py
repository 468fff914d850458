"""View behaviour shared by the event and post endpoints."""

from . import policy


class AudienceScopedViewMixin:
    """Scope list results to what the caller can view.

    Detail lookups use the unfiltered queryset so that a resource the caller
    cannot see answers 403 from ``AudienceScopedPermission`` rather than 404.
    Non-administrators editing their own content cannot move it to another
    audience; the audience fields are dropped from their updates.
    """

    def get_queryset(self):
        queryset = super().get_queryset()  # type: ignore[misc]
        if getattr(self, "action", None) == "list":
            queryset = queryset.filter(policy.visible_filter(self.request.user, queryset.model))  # type: ignore[attr-defined]
        return queryset

    def perform_update(self, serializer):
        if not policy.is_admin(self.request.user.membership_type):  # type: ignore[attr-defined]
            model = serializer.Meta.model
            serializer.validated_data.pop(model.audience_flag, None)
            serializer.validated_data.pop("subgroup", None)
        serializer.save()


__all__ = ["AudienceScopedViewMixin"]
