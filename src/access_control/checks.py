"""System checks for the visibility policy configuration."""

from django.core.checks import Error, register

from access_control.models import AudienceScopedModel, MembershipType, SubGroupCategory
from access_control.permissions import AudienceScopedPermission


@register()
def allow_list_covers_every_category(app_configs, **kwargs):
    """Every sub-group category needs an allow-list of valid membership types."""
    from access_control.policy import CROSS_CUTTING_ACCESS

    errors: list[Error] = []
    valid_types = set(MembershipType.values)

    for category in SubGroupCategory.values:
        if category not in CROSS_CUTTING_ACCESS:
            errors.append(
                Error(
                    f"Sub-group category {category!r} has no cross-cutting allow-list.",
                    id="access_control.E001",
                )
            )

    for category, allowed in CROSS_CUTTING_ACCESS.items():
        unknown = set(allowed) - valid_types
        if unknown:
            errors.append(
                Error(
                    f"Allow-list for {category!r} names unknown membership types: "
                    f"{sorted(unknown)}.",
                    id="access_control.E002",
                )
            )

    return errors


@register()
def scoped_views_use_scoped_models(app_configs, **kwargs):
    """Views guarded by AudienceScopedPermission must serve audience-scoped models.

    The permission reads ``is_open``, ``subgroup`` and ``author`` from each
    object; a queryset over any other model would fail at request time.
    """
    errors: list[Error] = []

    # Import here to avoid circular imports at module load time.
    from bulletin.views import PostViewSet
    from events.views import EventViewSet

    for view_cls in (EventViewSet, PostViewSet):
        if AudienceScopedPermission not in getattr(view_cls, "permission_classes", []):
            continue
        queryset = getattr(view_cls, "queryset", None)
        model = getattr(queryset, "model", None)
        if model is None or not issubclass(model, AudienceScopedModel):
            errors.append(
                Error(
                    f"{view_cls.__name__} uses AudienceScopedPermission but does not "
                    f"serve an AudienceScopedModel queryset.",
                    obj=view_cls,
                    id="access_control.E003",
                )
            )

    return errors
