"""Authentication endpoints and member administration."""

import logging
from typing import Any

from django.contrib.auth import get_user_model
from django.http import JsonResponse
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.response import Response
from rest_framework.views import APIView

from access_control.permissions import UserAccountPermission
from core.response import BaseAPIView, BaseViewSet, api_response
from events.birthdays import sync_birthday
from .serializers import (
    LoginSerializer,
    PasswordChangeSerializer,
    ProfileUpdateSerializer,
    UserDetailSerializer,
    UserSerializer,
)
from .services import TokenService

logger = logging.getLogger(__name__)

User = get_user_model()


class LoginView(BaseAPIView):
    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Authenticate and issue access + refresh tokens."""
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.validated_data["user"]
        access, refresh = TokenService.generate_tokens(user)
        return api_response(
            {"access": access, "refresh": refresh, "user": UserDetailSerializer(user).data}
        )


class RefreshView(BaseAPIView):
    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Exchange a valid refresh token for new access/refresh tokens."""
        refresh_token = request.data.get("refresh")
        if not refresh_token:
            raise AuthenticationFailed("Refresh token required")

        payload = TokenService.decode_token(refresh_token, expected_type="refresh")
        user = _get_active_user(payload.get("sub"))
        if not user:
            raise AuthenticationFailed("User not found or inactive")

        if not TokenService.is_current(payload, user):
            raise AuthenticationFailed("Invalid or revoked refresh token")

        access, new_refresh = TokenService.generate_tokens(user)
        return api_response({"access": access, "refresh": new_refresh})


class LogoutView(APIView):
    """Invalidate the current access token by blocklisting its jti."""

    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Blocklist the bearer access token and return 204 No Content."""
        token = _get_bearer_token(request)
        if not token:
            return JsonResponse({"data": None, "errors": ["Missing token."]}, status=401)

        payload = TokenService.decode_token(token, expected_type="access")
        TokenService.block_token(payload["jti"], payload["exp"])
        return Response(status=status.HTTP_204_NO_CONTENT)


class LogoutAllView(APIView):
    """Invalidate all existing tokens for the current member across devices."""

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Increment token_version and blocklist the current access token."""
        TokenService.revoke_all(request.user)

        token = _get_bearer_token(request)
        if token:
            payload = TokenService.decode_token(token, expected_type="access")
            TokenService.block_token(payload["jti"], payload["exp"])

        return Response(status=status.HTTP_204_NO_CONTENT)


class MeView(BaseAPIView):

    # noinspection PyMethodMayBeStatic
    def get(self, request):
        """Return the current member's profile."""
        return api_response(UserDetailSerializer(request.user).data)

    # noinspection PyMethodMayBeStatic
    def patch(self, request):
        """Update name, sub-group or birth date of the current member."""
        user = request.user
        previous_birth_date = user.birth_date
        serializer = ProfileUpdateSerializer(user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        if user.birth_date != previous_birth_date:
            sync_birthday(user)
        return api_response(UserDetailSerializer(user).data)


class PasswordChangeView(BaseAPIView):

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Replace the current member's password after checking the old one."""
        serializer = PasswordChangeSerializer(data=request.data, context={"request": request})
        serializer.is_valid(raise_exception=True)
        request.user.set_password(serializer.validated_data["new_password"])
        request.user.save(update_fields=["password_hash"])
        logger.info("Password changed for user %s", request.user.pk)
        return api_response({"detail": "Password changed."})


class UserViewSet(BaseViewSet):
    """Member administration.

    Listing and creating accounts is reserved to administrators; a member
    may read their own account. Administrators of a single sub-group cannot
    create, promote, edit or delete administrators.
    """

    serializer_class = UserSerializer
    permission_classes = [UserAccountPermission]
    queryset = User.objects.select_related("subgroup")

    def perform_create(self, serializer):
        user = serializer.save()
        logger.info(
            "User %s created %s account %s", self.request.user.pk, user.membership_type, user.pk
        )
        if user.birth_date:
            sync_birthday(user)

    def perform_update(self, serializer):
        previous_birth_date = serializer.instance.birth_date
        user = serializer.save()
        if user.birth_date != previous_birth_date:
            sync_birthday(user)

    def perform_destroy(self, instance):
        logger.info("User %s deleted account %s", self.request.user.pk, instance.pk)
        instance.delete()


def _get_active_user(user_id) -> User | None:
    """Retrieve an active user by id, or None if missing/inactive."""
    if not user_id:
        return None
    try:
        user = User.objects.select_related("subgroup").get(id=user_id)
    except User.DoesNotExist:
        return None
    if not user.is_active:
        return None
    return user


def _get_bearer_token(request) -> str | None:
    """Extract the Bearer token from Authorization header if present."""
    auth_header = request.META.get("HTTP_AUTHORIZATION", "")
    if auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1]
    return None
