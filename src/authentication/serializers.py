"""Serializers for authentication flows and member administration."""

from typing import cast

from django.contrib.auth import get_user_model
from rest_framework import serializers
from rest_framework.exceptions import AuthenticationFailed, PermissionDenied

from access_control import policy
from access_control.models import SubGroup
from core.exceptions import Conflict
from .managers import UserManager
from .services import TokenService

User = get_user_model()


class LoginSerializer(serializers.Serializer):
    """Authenticate a member via email/password using bcrypt verification."""

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        """Authenticate credentials and attach the user to validated_data."""
        email = attrs.get("email")
        password = attrs.get("password")
        try:
            user = User.objects.select_related("subgroup").get(email__iexact=email)
        except User.DoesNotExist:
            raise AuthenticationFailed("Invalid credentials")

        if not user.is_active:
            raise AuthenticationFailed("User is inactive")

        if not UserManager.verify_password(user, password):
            raise AuthenticationFailed("Invalid credentials")

        attrs["user"] = user
        return attrs


class UserDetailSerializer(serializers.ModelSerializer):
    """Read-only member profile payload for responses."""

    subgroup_name = serializers.CharField(source="subgroup.name", default=None, read_only=True)
    is_admin = serializers.SerializerMethodField()

    class Meta:
        """Expose identity fields, membership type and sub-group."""
        model = User
        fields = [
            "id",
            "email",
            "name",
            "membership_type",
            "subgroup",
            "subgroup_name",
            "birth_date",
            "is_active",
            "is_admin",
            "date_joined",
        ]
        read_only_fields = fields

    @staticmethod
    def get_is_admin(obj) -> bool:
        return policy.is_admin(obj.membership_type)


class ProfileUpdateSerializer(serializers.ModelSerializer):
    """Fields a member may change on their own profile via /auth/me/."""

    subgroup = serializers.PrimaryKeyRelatedField(
        queryset=SubGroup.objects.all(), required=False, allow_null=True
    )

    class Meta:
        """Allow partial updates of name, sub-group and birth date."""
        model = User
        fields = ["name", "subgroup", "birth_date"]
        extra_kwargs = {
            "name": {"required": False, "allow_blank": False},
            "birth_date": {"required": False},
        }

    def validate(self, attrs):
        """Reject attempts to change email or membership type here.

        Those are administrative changes; silently ignoring them would hide
        the restriction from API consumers.
        """
        initial = getattr(self, "initial_data", {})
        for field in ("email", "membership_type"):
            if field in initial:
                raise serializers.ValidationError(f"{field} cannot be updated via this endpoint")
        if not attrs:
            raise serializers.ValidationError("No data provided for update")
        return super().validate(attrs)


class PasswordChangeSerializer(serializers.Serializer):
    """Validate the current password before accepting a new one."""

    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True, min_length=8)

    def validate_current_password(self, value):
        user = self.context["request"].user
        if not UserManager.verify_password(user, value):
            raise serializers.ValidationError("Current password is incorrect")
        return value


class UserSerializer(serializers.ModelSerializer):
    """Administrative create/update payload for member accounts."""

    password = serializers.CharField(write_only=True, min_length=8, required=False)
    subgroup = serializers.PrimaryKeyRelatedField(
        queryset=SubGroup.objects.all(), required=False, allow_null=True
    )
    subgroup_name = serializers.CharField(source="subgroup.name", default=None, read_only=True)

    class Meta:
        """Admins may set everything except the id and timestamps."""
        model = User
        fields = [
            "id",
            "email",
            "name",
            "password",
            "membership_type",
            "subgroup",
            "subgroup_name",
            "birth_date",
            "is_active",
            "date_joined",
            "updated_at",
        ]
        read_only_fields = ["id", "date_joined", "updated_at"]
        extra_kwargs = {"email": {"validators": []}}

    def validate_email(self, value):
        """Duplicate emails are a conflict, not a field error."""
        qs = User.objects.filter(email__iexact=value)
        if self.instance:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise Conflict("This email is already in use.")
        return value

    def validate_membership_type(self, value):
        """Only general administrators may create or promote administrators."""
        actor = self.context["request"].user
        unchanged = self.instance is not None and self.instance.membership_type == value
        if not unchanged and not policy.can_assign_membership(actor, value):
            raise PermissionDenied("Only general administrators can create or promote administrators.")
        return value

    def validate(self, attrs):
        if self.instance is None:
            if not attrs.get("password"):
                raise serializers.ValidationError({"password": ["This field is required."]})
            if not attrs.get("membership_type"):
                raise serializers.ValidationError({"membership_type": ["This field is required."]})
        return attrs

    def create(self, validated_data):
        manager = cast(UserManager, User.objects)
        password = validated_data.pop("password")
        email = validated_data.pop("email")
        return manager.create_user(email, password, **validated_data)

    def update(self, instance, validated_data):
        password = validated_data.pop("password", None)
        if password:
            instance.set_password(password)
            # A password reset by an administrator revokes existing sessions.
            TokenService.revoke_all(instance, save=False)
        return super().update(instance, validated_data)


__all__ = [
    "LoginSerializer",
    "UserDetailSerializer",
    "ProfileUpdateSerializer",
    "PasswordChangeSerializer",
    "UserSerializer",
]
