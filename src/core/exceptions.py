"""Custom exception handling to enforce the API error envelope."""

import logging
from typing import Any

from django.conf import settings
from django.db import DatabaseError
from rest_framework import status
from rest_framework.exceptions import APIException, AuthenticationFailed, NotAuthenticated
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from authentication.services import BlocklistUnavailable

logger = logging.getLogger(__name__)


class Conflict(APIException):
    """Raised when a unique business key (email, sub-group name) is taken."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "Resource already exists."
    default_code = "conflict"


class PushUnavailable(APIException):
    """Raised by endpoints that require web push when VAPID keys are missing."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Push notifications are not configured."
    default_code = "push_unavailable"


def _normalize_errors(payload: Any) -> list[Any]:
    """Convert DRF's response.data into a list for the envelope."""

    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and "detail" in payload:
        # Common DRF pattern: {"detail": "..."}
        return [payload["detail"]]
    return [payload]


def custom_exception_handler(exc: Exception, context: dict[str, Any]) -> Response | None:
    """Wrap DRF errors in `{ "data": null, "errors": [...] }` shape.

    - Uses DRF's default handler to produce the base response.
    - Collapses authentication failures into one 401 message unless
      DEBUG_AUTH_ERRORS is enabled.
    - Answers store/blocklist outages with 503 and anything unexpected with a
      logged 500, both still inside the envelope.
    """

    if isinstance(exc, BlocklistUnavailable):
        logger.error("Token blocklist unavailable: %s", exc)
        return Response(
            {"data": None, "errors": ["Authentication service unavailable (blocklist)."]},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    if isinstance(exc, DatabaseError):
        logger.exception("Database error while handling %s", _view_name(context))
        return Response(
            {"data": None, "errors": ["Service temporarily unavailable."]},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    response = drf_exception_handler(exc, context)

    if response is None:
        logger.exception("Unhandled error in %s", _view_name(context), exc_info=exc)
        return Response(
            {"data": None, "errors": ["Internal server error."]},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    # MiddlewareUserAuthentication has no WWW-Authenticate header, so DRF
    # would downgrade these to 403.
    if isinstance(exc, (AuthenticationFailed, NotAuthenticated)):
        response.status_code = status.HTTP_401_UNAUTHORIZED

    if response.status_code >= 400:
        base_errors = response.data

        if response.status_code == status.HTTP_401_UNAUTHORIZED:
            if getattr(settings, "DEBUG_AUTH_ERRORS", False):
                errors = _normalize_errors(base_errors)
            else:
                errors = [
                    "Authentication credentials were not provided or are invalid, "
                    "token revoked, or user is inactive."
                ]
        else:
            errors = _normalize_errors(base_errors)

        response.data = {"data": None, "errors": errors}

    return response


def _view_name(context: dict[str, Any]) -> str:
    view = context.get("view")
    return type(view).__name__ if view is not None else "unknown view"


__all__ = ["Conflict", "PushUnavailable", "custom_exception_handler"]
