"""Users app API views.

Endpoints include:
- me: the authenticated user's profile and the navigation tabs their role unlocks.
- users: list members (LOGS or above) or create one (ADMIN).
- users/<id>: fetch, update or delete a member (ADMIN, strictly lower roles only).
"""

from common.responses import result_response
from common.throttling import SettingsScopedRateThrottle
from django.http import Http404
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import generics, status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from . import selectors, services
from .logging import log_access_event
from .permissions import Capability, HasCapability
from .serializers import UserInputSerializer, UserMeSerializer, UserSerializer

UserPermission = HasCapability.for_(Capability.MANAGE_USERS, read=Capability.VIEW_USERS)


class UserPagination(PageNumberPagination):
    page_size = 50
    page_size_query_param = "page_size"
    max_page_size = 200


def _user_body(user_id):
    user = selectors.get_user(user_id)
    return UserSerializer(user).data if user else None


def _log_result(action: str, request, result, user_id=None):
    extra = {"target_id": user_id} if user_id is not None else None
    log_access_event(action, request, status="success" if result else result.code, extra=extra)


@extend_schema(
    operation_id="users_current_user",
    summary="Get current user profile",
    description=(
        "Returns the current authenticated user's profile.\n\n"
        "Auth: Requires JWT (Authorization: Bearer <token>) or session auth.\n\n"
        "Response fields: id, username, name, first_name, last_name, role, nusnet_id, "
        "telegram_handle and `tabs`, the navigation entries the role can open.\n\n"
        "Errors: 401 if authentication credentials are missing or invalid."
    ),
    tags=["User Endpoints"],
    responses={
        200: OpenApiResponse(description="User profile", response=UserMeSerializer),
        401: OpenApiResponse(description="Unauthorized"),
    },
)
@api_view(["GET"])
@permission_classes([IsAuthenticated])
@throttle_classes([SettingsScopedRateThrottle])
def current_user(request):
    """Return the authenticated user's profile and tabs."""
    log_access_event("profile", request, user=request.user)
    return Response(UserMeSerializer(request.user).data)


# Throttle scope for profile endpoint
current_user.throttle_scope = "profile"


class UserListCreateView(generics.ListAPIView):
    """List club members or create one.

    Filters:
    - `role`: REQUESTER, IH, LOGS or ADMIN
    - `search`: name, NUSNET id or Telegram handle
    """

    permission_classes = [UserPermission]
    throttle_classes = [SettingsScopedRateThrottle]
    serializer_class = UserSerializer
    pagination_class = UserPagination

    def get_throttles(self):
        self.throttle_scope = "users" if self.request.method == "GET" else "users_write"
        return super().get_throttles()

    def get_queryset(self):
        params = self.request.query_params
        return selectors.list_users(search=params.get("search") or None, role=params.get("role") or None)

    @extend_schema(
        tags=["User Endpoints"],
        summary="List users",
        parameters=[
            OpenApiParameter(name="role", description="Role filter", required=False, type=str),
            OpenApiParameter(name="search", description="Name, NUSNET or handle", required=False, type=str),
        ],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @extend_schema(
        tags=["User Endpoints"],
        summary="Create user",
        description="Creates a member with an optional list of holder group ids. Roles must rank below the caller's.",
        request=UserInputSerializer,
        responses={201: UserSerializer},
        examples=[
            OpenApiExample(
                "New member",
                value={"first_name": "Ann", "nusnet": "E1234567", "telegram_handle": "@ann", "group_ids": ["band"]},
                request_only=True,
            ),
            OpenApiExample(
                "Duplicate handle",
                value={"detail": "User with Telegram handle @ann already exists."},
                response_only=True,
            ),
        ],
    )
    def post(self, request):
        serializer = UserInputSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        result = services.create_user(request.user, **serializer.validated_data)
        _log_result("user_create", request, result)
        if not result:
            return result_response(result)
        return Response(_user_body(result.data["user_id"]), status=status.HTTP_201_CREATED)


class UserDetailView(APIView):
    permission_classes = [UserPermission]
    throttle_classes = [SettingsScopedRateThrottle]

    def get_throttles(self):
        self.throttle_scope = "users" if self.request.method == "GET" else "users_write"
        return super().get_throttles()

    @extend_schema(tags=["User Endpoints"], summary="Get user", responses={200: UserSerializer})
    def get(self, request, user_id: int):
        body = _user_body(user_id)
        if body is None:
            raise Http404
        return Response(body)

    @extend_schema(
        tags=["User Endpoints"],
        summary="Update user",
        description="Overwrites the member's details. When `group_ids` is sent, memberships are replaced by it.",
        request=UserInputSerializer,
        responses={200: UserSerializer},
    )
    def patch(self, request, user_id: int):
        serializer = UserInputSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        result = services.update_user(request.user, user_id, **serializer.validated_data)
        _log_result("user_update", request, result, user_id)
        if not result:
            return result_response(result)
        return Response(_user_body(user_id))

    @extend_schema(tags=["User Endpoints"], summary="Delete user", responses={204: None})
    def delete(self, request, user_id: int):
        result = services.delete_user(request.user, user_id)
        _log_result("user_delete", request, result, user_id)
        return result_response(result, status=status.HTTP_204_NO_CONTENT, data={})
