"""Visibility and authorization policy for members, events, posts and comments.

The policy is data: ``CROSS_CUTTING_ACCESS`` lists, per sub-group category,
the membership types that see that category's content in addition to the
sub-group's own members. Every check in the API, and the notification
audience, is derived from this table and ``ADMIN_TYPES``.
"""

from typing import Iterable, Optional

from django.db.models import Q
from rest_framework.exceptions import PermissionDenied

from .models import AudienceScopedModel, MembershipType, SubGroup, SubGroupCategory

ADMIN_TYPES: frozenset[str] = frozenset(
    {
        MembershipType.GENERAL_ADMIN,
        MembershipType.DEMOLAY_ADMIN,
        MembershipType.JOBS_DAUGHTERS_ADMIN,
        MembershipType.FRATERNA_ADMIN,
    }
)

CROSS_CUTTING_ACCESS: dict[str, frozenset[str]] = {
    SubGroupCategory.MASONIC_SESSION: frozenset(
        {
            MembershipType.GENERAL_ADMIN,
            MembershipType.MASON,
        }
    ),
    SubGroupCategory.DEMOLAY_MEETING: frozenset(
        {
            MembershipType.GENERAL_ADMIN,
            MembershipType.DEMOLAY_ADMIN,
            MembershipType.MASON,
            MembershipType.DEMOLAY_MEMBER,
        }
    ),
    SubGroupCategory.JOBS_DAUGHTERS_MEETING: frozenset(
        {
            MembershipType.GENERAL_ADMIN,
            MembershipType.JOBS_DAUGHTERS_ADMIN,
            MembershipType.MASON,
            MembershipType.JOBS_DAUGHTERS_MEMBER,
        }
    ),
    SubGroupCategory.FRATERNA_MEETING: frozenset(
        {
            MembershipType.GENERAL_ADMIN,
            MembershipType.FRATERNA_ADMIN,
            MembershipType.MASON,
            MembershipType.FRATERNA_MEMBER,
        }
    ),
}


def is_admin(membership_type: Optional[str]) -> bool:
    """Return True for any of the administrator membership types."""
    return membership_type in ADMIN_TYPES


def is_general_admin(membership_type: Optional[str]) -> bool:
    return membership_type == MembershipType.GENERAL_ADMIN


def cross_cutting_types(category: Optional[str]) -> frozenset[str]:
    """Membership types allow-listed for a sub-group category (empty if unknown)."""
    return CROSS_CUTTING_ACCESS.get(category, frozenset())


def categories_visible_to(membership_type: Optional[str]) -> list[str]:
    """Sub-group categories whose allow-list contains ``membership_type``."""
    return [
        category
        for category, allowed in CROSS_CUTTING_ACCESS.items()
        if membership_type in allowed
    ]


def can_view(user, resource) -> bool:
    """Decide whether ``user`` may read an event, post or comment.

    Comments carry no audience of their own and are checked against their
    post.
    """
    if not isinstance(resource, AudienceScopedModel):
        resource = resource.post

    if resource.is_open:
        return True
    if resource.subgroup_id is not None and resource.subgroup_id == user.subgroup_id:
        return True
    if resource.subgroup_id is not None and user.membership_type in cross_cutting_types(
        resource.subgroup.name
    ):
        return True
    return is_admin(user.membership_type)


def can_mutate(user, resource) -> bool:
    """Administrators may change anything; everyone else only what they wrote."""
    if is_admin(user.membership_type):
        return True
    return resource.author_id == user.pk


def can_delete_comment(user, comment) -> bool:
    """Comments may also be removed by the author of the post they sit on."""
    return can_mutate(user, comment) or comment.post.author_id == user.pk


def can_assign_membership(actor, membership_type: Optional[str]) -> bool:
    """Only general administrators may create or promote administrators."""
    if not is_admin(actor.membership_type):
        return False
    if is_admin(membership_type):
        return is_general_admin(actor.membership_type)
    return True


def can_manage_user(actor, target) -> bool:
    """Administrators manage members; only general administrators manage admins."""
    if not is_admin(actor.membership_type):
        return False
    if is_admin(target.membership_type) and target.pk != actor.pk:
        return is_general_admin(actor.membership_type)
    return True


def ensure_can_view(user, resource) -> None:
    if not can_view(user, resource):
        raise PermissionDenied("You do not have access to this resource.")


def ensure_can_create(user, *, is_open: bool, subgroup: Optional[SubGroup]) -> None:
    """Reject public/global content or foreign targeting by non-administrators.

    A non-administrator may only publish to their own sub-group. Content with
    no sub-group that is not public would reach administrators only, so it is
    reserved to them as well.
    """
    if is_admin(user.membership_type):
        return
    if is_open:
        raise PermissionDenied("Only administrators can publish to everyone.")
    subgroup_id = subgroup.pk if subgroup is not None else None
    if subgroup_id is None or subgroup_id != user.subgroup_id:
        raise PermissionDenied("Only administrators can publish to other sub-groups.")


def visible_filter(user, model: type[AudienceScopedModel]) -> Q:
    """ORM filter selecting the ``model`` rows ``user`` can view."""
    if is_admin(user.membership_type):
        return Q()
    condition = Q(**{model.audience_flag: True})
    if user.subgroup_id is not None:
        condition |= Q(subgroup_id=user.subgroup_id)
    categories = categories_visible_to(user.membership_type)
    if categories:
        condition |= Q(subgroup__name__in=categories)
    return condition


def audience_filter(resource: AudienceScopedModel) -> Q:
    """ORM filter over users selecting everyone who can view ``resource``."""
    if resource.is_open:
        return Q()
    condition = Q(membership_type__in=ADMIN_TYPES)
    if resource.subgroup_id is not None:
        condition |= Q(subgroup_id=resource.subgroup_id)
        condition |= Q(membership_type__in=cross_cutting_types(resource.subgroup.name))
    return condition


def creatable_subgroups(user, subgroups: Iterable[SubGroup]) -> list[SubGroup]:
    """Sub-groups an administrator may target when creating an event."""
    if is_general_admin(user.membership_type):
        return list(subgroups)
    if not is_admin(user.membership_type):
        return []
    allowed = set(categories_visible_to(user.membership_type))
    return [subgroup for subgroup in subgroups if subgroup.name in allowed]


__all__ = [
    "ADMIN_TYPES",
    "CROSS_CUTTING_ACCESS",
    "is_admin",
    "is_general_admin",
    "cross_cutting_types",
    "categories_visible_to",
    "can_view",
    "can_mutate",
    "can_delete_comment",
    "can_assign_membership",
    "can_manage_user",
    "ensure_can_view",
    "ensure_can_create",
    "visible_filter",
    "audience_filter",
    "creatable_subgroups",
]
