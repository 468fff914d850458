"""Response helpers and base classes for consistent API envelopes."""

import math
from typing import Any

from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.viewsets import ModelViewSet, ReadOnlyModelViewSet


def api_response(data: Any, status: int = 200) -> Response:
    """Return data wrapped in the standard envelope.

    All successful JSON responses should use this helper to ensure the
    `{ "data": ..., "errors": [] }` shape.
    """

    return Response({"data": data, "errors": []}, status=status)


def _is_enveloped(payload: Any) -> bool:
    return isinstance(payload, dict) and "data" in payload and "errors" in payload


class EnvelopeMixin:
    """Mixin to wrap successful responses in the standard envelope."""

    def finalize_response(self, request, response, *args, **kwargs):  # type: ignore[override]
        """Ensure non-error responses include the `{data, errors}` envelope."""
        if hasattr(response, "data") and response.status_code and response.status_code < 400:
            if response.status_code != 204 and not _is_enveloped(response.data):
                response.data = {"data": response.data, "errors": []}
        return super().finalize_response(request, response, *args, **kwargs)  # type: ignore[attr-defined]


class PagePagination(PageNumberPagination):
    """``?page=&limit=`` pagination reporting totals alongside the results."""

    page_size = 10
    page_size_query_param = "limit"
    max_page_size = 100

    def get_paginated_response(self, data):
        total = self.page.paginator.count
        limit = self.get_page_size(self.request) or self.page_size
        return Response(
            {
                "results": data,
                "total": total,
                "page": self.page.number,
                "limit": limit,
                "total_pages": math.ceil(total / limit) if limit else 0,
            }
        )


class BaseAPIView(EnvelopeMixin, APIView):
    """APIView that ensures successful responses use the standard envelope."""


class BaseViewSet(EnvelopeMixin, ModelViewSet):
    """ModelViewSet variant that wraps successful responses in the envelope."""


class BaseReadOnlyViewSet(EnvelopeMixin, ReadOnlyModelViewSet):
    """Read-only variant for resources that are never written over the API."""
