"""ViewSets for sub-group administration."""

from rest_framework import permissions
from rest_framework.decorators import action

from core.response import BaseViewSet, api_response
from . import policy
from .models import SubGroup
from .permissions import IsAdministrator
from .serializers import SubGroupSerializer


class SubGroupViewSet(BaseViewSet):
    """CRUD endpoints for sub-groups.

    Any member can list sub-groups (profile forms need them); only
    administrators can create, edit or delete them.
    """

    serializer_class = SubGroupSerializer
    queryset = SubGroup.objects.all()

    def get_permissions(self):
        if self.action in ("list", "retrieve"):
            return [permissions.IsAuthenticated()]
        return [IsAdministrator()]

    @action(detail=False, methods=["get"])
    def available(self, request):
        """Sub-groups the calling administrator may target with a new event."""
        subgroups = policy.creatable_subgroups(request.user, self.get_queryset())
        return api_response(self.get_serializer(subgroups, many=True).data)


__all__ = ["SubGroupViewSet"]
