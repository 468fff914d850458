"""Membership types, sub-groups, and the base model for audience-scoped content."""

from django.conf import settings
from django.db import models


class MembershipType(models.TextChoices):
    """Membership tiers. Stored values match the organization's existing data."""

    GENERAL_ADMIN = "MACOM_ADMIN_GERAL", "Maçom - administrador geral"
    DEMOLAY_ADMIN = "ADMIN_DM", "Administrador DeMolay"
    JOBS_DAUGHTERS_ADMIN = "ADMIN_FDJ", "Administradora Filhas de Jó"
    FRATERNA_ADMIN = "ADMIN_FRATERNA", "Administradora Fraterna"
    MASON = "MACOM", "Maçom"
    DEMOLAY_MEMBER = "MEMBRO_DM", "Membro DeMolay"
    JOBS_DAUGHTERS_MEMBER = "MEMBRO_FDJ", "Membro Filhas de Jó"
    FRATERNA_MEMBER = "MEMBRO_FRATERNA", "Membro Fraterna"


class SubGroupCategory(models.TextChoices):
    """The four sub-group ("classe") categories that gate visibility."""

    MASONIC_SESSION = "Sessão Maçônica", "Sessão Maçônica"
    DEMOLAY_MEETING = "Reunião DeMolay", "Reunião DeMolay"
    JOBS_DAUGHTERS_MEETING = "Reunião FDJ", "Reunião FDJ"
    FRATERNA_MEETING = "Reunião Fraterna", "Reunião Fraterna"


class SubGroup(models.Model):
    """A sub-group of members; events and posts may be scoped to one."""

    name = models.CharField(max_length=100, unique=True, choices=SubGroupCategory.choices)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.name


class AudienceScopedModel(models.Model):
    """Authored content visible either to everyone or to one sub-group's audience.

    Subclasses name their "visible to everyone" boolean via ``audience_flag``
    so the policy and the ORM filters can address it generically.
    """

    audience_flag = "is_public"

    subgroup = models.ForeignKey(
        SubGroup,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="%(class)ss",
    )
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="%(class)ss",
    )

    class Meta:
        abstract = True

    @property
    def is_open(self) -> bool:
        """True when the content is public/global and bypasses sub-group rules."""
        return bool(getattr(self, self.audience_flag))


__all__ = ["MembershipType", "SubGroupCategory", "SubGroup", "AudienceScopedModel"]
