"""Calendar endpoints guarded by the visibility policy."""

import logging

from core.response import BaseAPIView, BaseViewSet, api_response
from access_control import policy
from access_control.mixins import AudienceScopedViewMixin
from access_control.permissions import AudienceScopedPermission, IsAdministrator
from notifications.fanout import notify_new_event
from .birthdays import sync_all_birthdays
from .models import Event
from .serializers import EventSerializer

logger = logging.getLogger(__name__)


class EventViewSet(AudienceScopedViewMixin, BaseViewSet):
    """Events ordered by start date.

    Only administrators create events; every creation notifies the event's
    audience.
    """

    serializer_class = EventSerializer
    permission_classes = [AudienceScopedPermission]
    create_requires_admin = True
    queryset = Event.objects.select_related("subgroup", "author")

    def perform_create(self, serializer):
        """Attach the author, save, then notify the audience."""
        policy.ensure_can_create(
            self.request.user,
            is_open=serializer.validated_data.get("is_public", False),
            subgroup=serializer.validated_data.get("subgroup"),
        )
        event = serializer.save(author=self.request.user)
        try:
            notify_new_event(event)
        except Exception:
            # The event is already stored; notifications are best-effort.
            logger.exception("Fan-out failed for event %s", event.pk)


class BirthdaySyncView(BaseAPIView):
    permission_classes = [IsAdministrator]

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Regenerate birthday events for every member with a birth date."""
        return api_response({"synced": sync_all_birthdays()})


__all__ = ["EventViewSet", "BirthdaySyncView"]
