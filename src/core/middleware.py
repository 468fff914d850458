"""Middleware resolving the bearer access token to an active member."""

import logging
from typing import Optional

from django.contrib.auth.models import AnonymousUser
from django.core.exceptions import ValidationError
from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed

from authentication.models import User
from authentication.services import TokenService, BlocklistUnavailable

logger = logging.getLogger(__name__)


class JWTAuthMiddleware(MiddlewareMixin):
    """Attach the member owning the bearer access token as ``request.user``.

    A token is accepted when it decodes as an access token, its ``jti`` is
    not blocklisted, its owner is active, and its ``ver`` claim matches the
    owner's ``token_version``. The member is loaded with their sub-group,
    which every visibility decision later in the request reads.
    """

    def process_request(self, request):  # type: ignore[override]
        token = _bearer_token(request)
        if token is None:
            request.user = AnonymousUser()
            return None

        try:
            request.user = self._authenticate(token)
        except AuthenticationFailed as exc:
            logger.info("Rejected bearer token: %s", exc.detail)
            return _unauthorized(str(exc.detail))
        except BlocklistUnavailable:
            logger.warning("Token blocklist unreachable; refusing authenticated request")
            return _service_unavailable()
        return None

    def _authenticate(self, token: str) -> User:
        payload = TokenService.decode_token(token, expected_type="access")
        jti = payload.get("jti")
        if not jti:
            raise AuthenticationFailed("Token has no identifier.")
        if TokenService.is_token_blocked(jti):
            raise AuthenticationFailed("Token has been revoked.")

        member = self._get_member(payload.get("sub"))
        if member is None or not member.is_active:
            raise AuthenticationFailed("Member account is missing or inactive.")
        if not TokenService.is_current(payload, member):
            raise AuthenticationFailed("Sessions for this member were revoked.")
        return member

    @staticmethod
    def _get_member(user_id: Optional[str]) -> Optional[User]:
        if not user_id:
            return None
        try:
            return User.objects.select_related("subgroup").get(id=user_id)
        except (User.DoesNotExist, ValidationError):
            return None


def _bearer_token(request) -> Optional[str]:
    auth_header = request.META.get("HTTP_AUTHORIZATION", "")
    if not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1] or None


def _unauthorized(reason: str) -> JsonResponse:
    return JsonResponse(
        {"data": None, "errors": [reason]},
        status=status.HTTP_401_UNAUTHORIZED,
    )


def _service_unavailable() -> JsonResponse:
    return JsonResponse(
        {"data": None, "errors": ["Authentication service unavailable (blocklist)."]},
        status=status.HTTP_503_SERVICE_UNAVAILABLE,
    )


__all__ = ["JWTAuthMiddleware"]
