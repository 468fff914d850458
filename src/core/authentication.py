"""Bridge between the JWT middleware and DRF authentication.

``JWTAuthMiddleware`` validates the bearer token and attaches the member to
the Django request; DRF builds its own ``Request.user`` from authentication
classes, so this module surfaces the already-resolved member instead of
decoding the token a second time.
"""

from typing import Any, Optional, Tuple

from django.contrib.auth.models import AnonymousUser
from rest_framework.authentication import BaseAuthentication


class MiddlewareUserAuthentication(BaseAuthentication):
    """Expose ``request._request.user`` (set by middleware) to DRF.

    Anonymous or missing users skip authentication, which lets DRF raise
    ``NotAuthenticated`` from the permission layer.
    """

    def authenticate(self, request) -> Optional[Tuple[Any, None]]:
        django_request = getattr(request, "_request", None)
        if django_request is None:
            return None

        user = getattr(django_request, "user", None)
        if user is None or isinstance(user, AnonymousUser):
            return None

        if not getattr(user, "is_authenticated", False):
            return None

        return user, None


__all__ = ["MiddlewareUserAuthentication"]
