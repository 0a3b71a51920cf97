"""Catalog API endpoints.

The catalogue itself is readable by anyone. Item and location writes need
LOGS or above; holder groups and memberships need ADMIN.
"""

from common.responses import result_response
from common.throttling import SettingsScopedRateThrottle
from django.http import Http404
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema
from rest_framework import generics, status
from rest_framework.pagination import PageNumberPagination
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.views import APIView
from users.permissions import Capability, HasCapability

from . import selectors, services
from .serializers import (
    CatalogueItemSerializer,
    InventoryHolderSerializer,
    ItemInputSerializer,
    ItemUpdateInputSerializer,
    MembershipInputSerializer,
    NameInputSerializer,
    SlocSerializer,
)
from .storage import upload_item_image


class CatalogPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = "page_size"
    max_page_size = 100


class _ScopedView:
    """Use the read scope for safe methods and the write scope otherwise."""

    throttle_classes = [SettingsScopedRateThrottle]
    read_scope = "catalog"
    write_scope = "catalog_write"

    def get_throttles(self):
        safe = self.request.method in ("GET", "HEAD", "OPTIONS")
        self.throttle_scope = self.read_scope if safe else self.write_scope
        return super().get_throttles()


def _item_body(item_id):
    item = selectors.get_item(item_id)
    if item is None:
        return None
    row = selectors.catalogue_rows([item])[0]
    return CatalogueItemSerializer(item, context={"stock": {item.item_id: row["stock"]}}).data


class ItemListCreateView(_ScopedView, generics.ListAPIView):
    """Paginated catalogue with derived stock figures, or create an item."""

    permission_classes = [HasCapability.for_(Capability.MANAGE_ITEMS, read=Capability.VIEW_CATALOGUE)]
    serializer_class = CatalogueItemSerializer
    pagination_class = CatalogPagination

    def get_queryset(self):
        params = self.request.query_params
        return selectors.list_items(
            search=params.get("search") or None,
            sloc_id=params.get("sloc") or None,
            ih_id=params.get("ih") or None,
            sort=params.get("sort") or None,
            asc=str(params.get("asc", "")).lower() in {"1", "true", "yes"},
        )

    def list(self, request, *args, **kwargs):
        page = self.paginate_queryset(self.get_queryset())
        rows = selectors.catalogue_rows(page)
        stock = {row["item"].item_id: row["stock"] for row in rows}
        serializer = CatalogueItemSerializer(page, many=True, context={"request": request, "stock": stock})
        return self.get_paginated_response(serializer.data)

    @extend_schema(
        tags=["Catalog Endpoints"],
        summary="List catalogue items",
        description=(
            "Items with `pending_qty`, `on_loan_qty`, `total_qty` (item_qty + on loan) and "
            "`net_qty` (max(0, item_qty - pending)) recomputed on every read."
        ),
        parameters=[
            OpenApiParameter("search", OpenApiTypes.STR, location="query", description="Text or exact item id"),
            OpenApiParameter("sloc", OpenApiTypes.STR, location="query", description="Storage location id"),
            OpenApiParameter("ih", OpenApiTypes.STR, location="query", description="Inventory holder id"),
            OpenApiParameter("sort", OpenApiTypes.STR, location="query", description="`name`, `quantity` or `id`"),
            OpenApiParameter("asc", OpenApiTypes.BOOL, location="query", description="Ascending order"),
        ],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @extend_schema(
        tags=["Catalog Endpoints"],
        summary="Create item",
        request=ItemInputSerializer,
        responses={201: CatalogueItemSerializer},
    )
    def post(self, request):
        serializer = ItemInputSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        result = services.create_item(request.user, **serializer.validated_data)
        if not result:
            return result_response(result)
        return Response(_item_body(result.data["item_id"]), status=status.HTTP_201_CREATED)


class ItemDetailView(_ScopedView, APIView):
    permission_classes = [HasCapability.for_(Capability.MANAGE_ITEMS, read=Capability.VIEW_CATALOGUE)]

    @extend_schema(tags=["Catalog Endpoints"], summary="Get item", responses={200: CatalogueItemSerializer})
    def get(self, request, item_id: int):
        body = _item_body(item_id)
        if body is None:
            raise Http404
        return Response(body)

    @extend_schema(
        tags=["Catalog Endpoints"],
        summary="Update item",
        description="Overwrites the item. `delete_previous_image` removes the old image file after saving.",
        request=ItemUpdateInputSerializer,
        responses={200: CatalogueItemSerializer},
    )
    def patch(self, request, item_id: int):
        serializer = ItemUpdateInputSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        result = services.update_item(request.user, item_id, **serializer.validated_data)
        if not result:
            return result_response(result)
        return Response(_item_body(item_id))

    @extend_schema(tags=["Catalog Endpoints"], summary="Delete item", responses={204: None})
    def delete(self, request, item_id: int):
        result = services.delete_item(request.user, item_id)
        return result_response(result, status=status.HTTP_204_NO_CONTENT, data={})


class ItemImageUploadView(APIView):
    permission_classes = [HasCapability.for_(Capability.MANAGE_ITEMS)]
    parser_classes = [MultiPartParser, FormParser]
    throttle_classes = [SettingsScopedRateThrottle]
    throttle_scope = "catalog_write"

    @extend_schema(
        tags=["Catalog Endpoints"],
        summary="Upload item image",
        description="Multipart field `photo`; JPEG, PNG, GIF or WebP up to 10MB. Returns the stored URL.",
        request={
            "multipart/form-data": {
                "type": "object",
                "properties": {"photo": {"type": "string", "format": "binary"}},
            }
        },
        examples=[
            OpenApiExample("Uploaded", value={"url": "/media/item-images/1700000000000-mic.png"}, response_only=True)
        ],
    )
    def post(self, request):
        result = upload_item_image(request.user, request.FILES.get("photo"))
        return result_response(result, status=status.HTTP_201_CREATED)


class SlocListCreateView(_ScopedView, APIView):
    permission_classes = [HasCapability.for_(Capability.MANAGE_LOCATIONS, read=Capability.VIEW_CATALOGUE)]

    @extend_schema(
        tags=["Catalog Endpoints"],
        summary="Search storage locations",
        parameters=[OpenApiParameter("query", OpenApiTypes.STR, location="query", description="Name contains")],
        responses={200: SlocSerializer(many=True)},
    )
    def get(self, request):
        slocs = services.search_slocs(request.query_params.get("query", ""))
        return Response(SlocSerializer(slocs, many=True).data)

    @extend_schema(tags=["Catalog Endpoints"], summary="Create storage location", request=NameInputSerializer)
    def post(self, request):
        serializer = NameInputSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        result = services.create_sloc(request.user, sloc_name=serializer.validated_data["name"])
        return result_response(result, status=status.HTTP_201_CREATED)


class SlocDetailView(APIView):
    permission_classes = [HasCapability.for_(Capability.MANAGE_LOCATIONS)]
    throttle_classes = [SettingsScopedRateThrottle]
    throttle_scope = "catalog_write"

    @extend_schema(tags=["Catalog Endpoints"], summary="Deactivate storage location", responses={204: None})
    def delete(self, request, sloc_id: str):
        result = services.deactivate_sloc(request.user, sloc_id)
        return result_response(result, status=status.HTTP_204_NO_CONTENT, data={})


class HolderListCreateView(_ScopedView, APIView):
    permission_classes = [HasCapability.for_(Capability.MANAGE_USERS, read=Capability.VIEW_CATALOGUE)]

    @extend_schema(
        tags=["Catalog Endpoints"],
        summary="Search inventory holders",
        parameters=[OpenApiParameter("query", OpenApiTypes.STR, location="query", description="Name contains")],
        responses={200: InventoryHolderSerializer(many=True)},
    )
    def get(self, request):
        holders = services.search_ihs(request.query_params.get("query", ""))
        return Response(InventoryHolderSerializer(holders, many=True).data)

    @extend_schema(tags=["Catalog Endpoints"], summary="Create group inventory holder", request=NameInputSerializer)
    def post(self, request):
        serializer = NameInputSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        result = services.create_group_ih(request.user, ih_name=serializer.validated_data["name"])
        return result_response(result, status=status.HTTP_201_CREATED)


class HolderDetailView(APIView):
    permission_classes = [HasCapability.for_(Capability.MANAGE_LOCATIONS)]
    throttle_classes = [SettingsScopedRateThrottle]
    throttle_scope = "catalog_write"

    @extend_schema(tags=["Catalog Endpoints"], summary="Deactivate inventory holder", responses={204: None})
    def delete(self, request, ih_id: str):
        result = services.deactivate_ih(request.user, ih_id)
        return result_response(result, status=status.HTTP_204_NO_CONTENT, data={})


class HolderMembersView(APIView):
    permission_classes = [HasCapability.for_(Capability.MANAGE_USERS)]
    throttle_classes = [SettingsScopedRateThrottle]
    throttle_scope = "users_write"

    @extend_schema(tags=["Catalog Endpoints"], summary="Add member to holder group", request=MembershipInputSerializer)
    def post(self, request, ih_id: str):
        serializer = MembershipInputSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data
        result = services.add_user_to_group(request.user, data["user_id"], ih_id, is_primary=data["is_primary"])
        return result_response(result, status=status.HTTP_201_CREATED)


class HolderMemberDetailView(APIView):
    permission_classes = [HasCapability.for_(Capability.MANAGE_USERS)]
    throttle_classes = [SettingsScopedRateThrottle]
    throttle_scope = "users_write"

    @extend_schema(tags=["Catalog Endpoints"], summary="Remove member from holder group", responses={204: None})
    def delete(self, request, ih_id: str, user_id: int):
        result = services.remove_user_from_group(request.user, user_id, ih_id)
        return result_response(result, status=status.HTTP_204_NO_CONTENT, data={})


class HolderPrimaryView(APIView):
    permission_classes = [HasCapability.for_(Capability.MANAGE_USERS)]
    throttle_classes = [SettingsScopedRateThrottle]
    throttle_scope = "users_write"

    @extend_schema(tags=["Catalog Endpoints"], summary="Set primary point of contact", request=None)
    def post(self, request, ih_id: str, user_id: int):
        return result_response(services.set_primary_poc(request.user, ih_id, user_id))
