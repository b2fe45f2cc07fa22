"""Actor directory API views."""

from __future__ import annotations

from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.accounts.permissions import IsAdmin, IsSalespersonOrAdmin
from modules.accounts.repositories.django_repository import UserDjangoRepository
from modules.accounts.serializers import UserSerializer
from modules.accounts.services import UserDirectory


def _directory() -> UserDirectory:
    return UserDirectory(user_repository=UserDjangoRepository())


class MeView(APIView):
    """GET /api/v1/me: the authenticated actor and its role."""

    def get(self, request: Request) -> Response:
        return Response(UserSerializer(request.user).data)


class StaffListView(APIView):
    """GET /api/v1/users/: salespeople and distributors (admin only)."""

    permission_classes = [IsAdmin]

    def get(self, request: Request) -> Response:
        users = _directory().list_staff()
        return Response(UserSerializer(users, many=True).data)


class DistributorListView(APIView):
    """GET /api/v1/users/distributors/: assignable distributors."""

    permission_classes = [IsSalespersonOrAdmin]

    def get(self, request: Request) -> Response:
        users = _directory().list_distributors()
        return Response(UserSerializer(users, many=True).data)
