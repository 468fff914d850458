"""Member account model using bcrypt-hashed passwords.

Access decisions come from ``membership_type`` and ``subgroup`` through
``access_control.policy``; Django's groups/permissions tables are not used.
"""

import uuid
from typing import Optional, ClassVar

from django.contrib.auth.models import AbstractBaseUser
from django.db import models

from access_control.models import MembershipType
from .managers import UserManager


class User(AbstractBaseUser):
    """Member identified by email, classified by membership type."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True)
    password_hash = models.CharField(max_length=128)
    name = models.CharField(max_length=150)
    membership_type = models.CharField(
        max_length=32,
        choices=MembershipType.choices,
        default=MembershipType.MASON,
    )
    subgroup = models.ForeignKey(
        "access_control.SubGroup",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="members",
    )
    birth_date = models.DateField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    token_version = models.PositiveIntegerField(default=1)
    date_joined = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS: ClassVar[list[str]] = ["name"]

    objects = UserManager()

    class Meta:
        """Default ordering shows newest members first."""
        ordering = ["-date_joined"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.email

    @property
    def first_name(self) -> str:
        return self.name.split(" ", 1)[0] if self.name else ""

    @property
    def is_staff(self) -> bool:
        """Django admin access follows the general administrator tier."""
        return self.is_active and self.membership_type == MembershipType.GENERAL_ADMIN

    def has_perm(self, perm, obj=None) -> bool:
        return self.is_staff

    def has_module_perms(self, app_label) -> bool:
        return self.is_staff

    def set_password(self, raw_password: Optional[str]) -> None:  # type: ignore[override]
        """Override to ensure bcrypt hashing via manager utility."""

        if raw_password is None:
            self.password_hash = ""
        else:
            self.password_hash = UserManager.hash_password(raw_password)

    def check_password(self, raw_password: Optional[str]) -> bool:  # type: ignore[override]
        """Delegate to bcrypt verification helper."""

        if raw_password is None:
            return False
        return UserManager.verify_password(self, raw_password)


__all__ = ["User"]
