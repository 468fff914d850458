"""DRF permission classes mapping HTTP methods onto the visibility policy."""

from rest_framework import permissions

from . import policy


def _authenticated(request) -> bool:
    user = getattr(request, "user", None)
    return bool(user and getattr(user, "is_authenticated", False))


class IsAdministrator(permissions.BasePermission):
    """Allow any administrator membership type."""

    message = "Only administrators can perform this action."

    def has_permission(self, request, view) -> bool:
        return _authenticated(request) and policy.is_admin(request.user.membership_type)


class AudienceScopedPermission(permissions.BasePermission):
    """Guard events and posts.

    Reads require ``policy.can_view`` on the object; writes require
    ``policy.can_mutate``. Views that set ``create_requires_admin`` reserve
    POST on the collection to administrators; the remaining create rules
    (public flag, sub-group targeting) are applied by the view before saving.
    """

    message = "You do not have permission to perform this action on this resource."

    def has_permission(self, request, view) -> bool:
        if not _authenticated(request):
            return False
        if request.method == "POST" and getattr(view, "create_requires_admin", False):
            self.message = "Only administrators can create this resource."
            return policy.is_admin(request.user.membership_type)
        return True

    def has_object_permission(self, request, view, obj) -> bool:
        if request.method in permissions.SAFE_METHODS:
            self.message = "You do not have access to this resource."
            return policy.can_view(request.user, obj)
        self.message = "Only administrators or the author can change this resource."
        return policy.can_mutate(request.user, obj)


class IsRecipient(permissions.BasePermission):
    """Objects addressed to a member (``obj.user``) are only reachable by that member."""

    message = "This notification belongs to another member."

    def has_permission(self, request, view) -> bool:
        return _authenticated(request)

    def has_object_permission(self, request, view, obj) -> bool:
        return obj.user_id == request.user.pk


class UserAccountPermission(permissions.BasePermission):
    """Administrators manage accounts; members may only read their own."""

    message = "You do not have permission to manage this account."

    def has_permission(self, request, view) -> bool:
        if not _authenticated(request):
            return False
        if getattr(view, "action", None) in ("list", "create"):
            return policy.is_admin(request.user.membership_type)
        return True

    def has_object_permission(self, request, view, obj) -> bool:
        user = request.user
        if request.method in permissions.SAFE_METHODS:
            return policy.is_admin(user.membership_type) or obj.pk == user.pk
        return policy.can_manage_user(user, obj)


__all__ = [
    "IsAdministrator",
    "AudienceScopedPermission",
    "IsRecipient",
    "UserAccountPermission",
]
