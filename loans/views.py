"""Loans API endpoints.

Thin wrappers over ``loans.services``: validate request shape, call the
action with the authenticated user as actor, and map the ``ActionResult``
to a response. Reads require LOGS or above, as do all mutations.
"""

from common.responses import result_response
from common.throttling import SettingsScopedRateThrottle
from django.http import Http404
from django_filters import rest_framework as filters
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema
from rest_framework import generics, status
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response
from rest_framework.views import APIView
from users.permissions import Capability, HasCapability

from . import selectors, services
from .models import LoanRequest
from .serializers import LoanCreateInputSerializer, LoanRequestSerializer, LoanUpdateInputSerializer

LoanPermission = HasCapability.for_(Capability.MANAGE_LOANS, read=Capability.VIEW_LOANS)


class DefaultPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = "page_size"


class LoanRequestFilterSet(filters.FilterSet):
    organisation = filters.CharFilter(field_name="organisation", lookup_expr="icontains")
    starts_after = filters.IsoDateTimeFilter(field_name="loan_date_start", lookup_expr="gte")
    ends_before = filters.IsoDateTimeFilter(field_name="loan_date_end", lookup_expr="lte")

    class Meta:
        model = LoanRequest
        fields = ["organisation", "starts_after", "ends_before"]


def _loan_body(ref_no):
    loan = selectors.get_loan(ref_no)
    return LoanRequestSerializer(loan).data if loan else None


class LoanListCreateView(generics.ListAPIView):
    """List loan requests (newest first) or create a new one.

    Filters:
    - `status`: one of PENDING, ONGOING, REJECTED, COMPLETED
    - `requester`: requester user id
    - `search`: reference number, requester name/NUSNET/handle, organisation or event
    """

    permission_classes = [LoanPermission]
    throttle_classes = [SettingsScopedRateThrottle]
    serializer_class = LoanRequestSerializer
    pagination_class = DefaultPagination
    filter_backends = [filters.DjangoFilterBackend]
    filterset_class = LoanRequestFilterSet

    def get_throttles(self):
        self.throttle_scope = "loans" if self.request.method == "GET" else "loans_write"
        return super().get_throttles()

    def get_queryset(self):
        params = self.request.query_params
        return selectors.list_loans(
            status=params.get("status") or None,
            requester_id=params.get("requester") or None,
            search=params.get("search") or None,
        )

    @extend_schema(
        tags=["Loans"],
        summary="List loan requests",
        parameters=[
            OpenApiParameter(name="status", description="Request status filter", required=False, type=str),
            OpenApiParameter(name="requester", description="Requester user id", required=False, type=int),
            OpenApiParameter(name="search", description="Free text search", required=False, type=str),
            OpenApiParameter(name="organisation", description="Organisation contains", required=False, type=str),
            OpenApiParameter(name="starts_after", description="ISO datetime lower bound", required=False, type=str),
            OpenApiParameter(name="ends_before", description="ISO datetime upper bound", required=False, type=str),
            OpenApiParameter(name="page", description="Page number", required=False, type=int),
            OpenApiParameter(name="page_size", description="Items per page", required=False, type=int),
        ],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @extend_schema(
        tags=["Loans"],
        summary="Create loan request",
        description=(
            "Creates a PENDING loan request with one PENDING line per item. "
            "Provide either `requester_id` or `new_requester`. No stock changes until approval."
        ),
        request=LoanCreateInputSerializer,
        responses={201: LoanRequestSerializer},
        examples=[
            OpenApiExample(
                "Existing requester",
                value={
                    "loan_date_start": "2025-03-01",
                    "loan_date_end": "2025-03-03",
                    "requester_id": 12,
                    "organisation": "Hall Band",
                    "items": [{"item_id": 4, "loan_qty": 2}],
                },
                request_only=True,
            ),
            OpenApiExample(
                "Insufficient stock",
                value={"detail": "Insufficient stock for Speaker. Available: 1, Requested: 2"},
                response_only=True,
            ),
        ],
    )
    def post(self, request):
        serializer = LoanCreateInputSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        result = services.create_loan(request.user, **serializer.validated_data)
        if not result:
            return result_response(result)
        return Response(_loan_body(result.data["ref_no"]), status=status.HTTP_201_CREATED)


class LoanDetailView(APIView):
    """Retrieve, update (PENDING only) or delete (PENDING only) a loan request."""

    permission_classes = [LoanPermission]
    throttle_classes = [SettingsScopedRateThrottle]

    def get_throttles(self):
        self.throttle_scope = "loans" if self.request.method == "GET" else "loans_write"
        return super().get_throttles()

    @extend_schema(tags=["Loans"], summary="Get loan request", responses={200: LoanRequestSerializer})
    def get(self, request, ref_no: int):
        body = _loan_body(ref_no)
        if body is None:
            raise Http404
        return Response(body)

    @extend_schema(
        tags=["Loans"],
        summary="Update loan request",
        description="Replaces dates, metadata and every line of a PENDING request.",
        request=LoanUpdateInputSerializer,
        responses={200: LoanRequestSerializer},
    )
    def patch(self, request, ref_no: int):
        serializer = LoanUpdateInputSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        result = services.update_loan(request.user, ref_no, **serializer.validated_data)
        if not result:
            return result_response(result)
        return Response(_loan_body(ref_no))

    @extend_schema(tags=["Loans"], summary="Delete loan request", responses={204: None})
    def delete(self, request, ref_no: int):
        result = services.delete_loan(request.user, ref_no)
        return result_response(result, status=status.HTTP_204_NO_CONTENT, data={})


class _LoanTransitionView(APIView):
    permission_classes = [HasCapability.for_(Capability.MANAGE_LOANS)]
    throttle_classes = [SettingsScopedRateThrottle]
    throttle_scope = "loans_write"
    transition = None

    def post(self, request, ref_no: int):
        result = type(self).transition(request.user, ref_no)
        if not result:
            return result_response(result)
        return Response(_loan_body(ref_no))


class LoanApproveView(_LoanTransitionView):
    """Approve a PENDING request: all lines go on loan, or none do."""

    transition = services.approve_loan

    @extend_schema(
        tags=["Loans"],
        summary="Approve loan request",
        request=None,
        responses={200: LoanRequestSerializer},
        examples=[OpenApiExample("Not pending", value={"detail": "Loan is not pending"}, response_only=True)],
    )
    def post(self, request, ref_no: int):
        return super().post(request, ref_no)


class LoanRejectView(_LoanTransitionView):
    """Reject a PENDING request and every line in it."""

    transition = services.reject_loan

    @extend_schema(tags=["Loans"], summary="Reject loan request", request=None, responses={200: LoanRequestSerializer})
    def post(self, request, ref_no: int):
        return super().post(request, ref_no)


class LoanItemReturnView(APIView):
    """Mark one ON_LOAN line as returned. Repeating the call is a no-op."""

    permission_classes = [HasCapability.for_(Capability.MANAGE_LOANS)]
    throttle_classes = [SettingsScopedRateThrottle]
    throttle_scope = "loans_write"

    @extend_schema(
        tags=["Loans"],
        summary="Return loan line",
        request=None,
        examples=[
            OpenApiExample(
                "Returned",
                value={
                    "loan_detail_id": 7,
                    "loan_status": "RETURNED",
                    "request_status": "COMPLETED",
                    "already_returned": False,
                },
                response_only=True,
            )
        ],
    )
    def post(self, request, loan_detail_id: int):
        return result_response(services.return_item(request.user, loan_detail_id))
