"""URL routes for the loans app (v1)."""

from django.urls import path

from .views import LoanApproveView, LoanDetailView, LoanItemReturnView, LoanListCreateView, LoanRejectView

app_name = "loans"

urlpatterns = [
    path("", LoanListCreateView.as_view(), name="loan-list"),
    path("<int:ref_no>/", LoanDetailView.as_view(), name="loan-detail"),
    path("<int:ref_no>/approve/", LoanApproveView.as_view(), name="loan-approve"),
    path("<int:ref_no>/reject/", LoanRejectView.as_view(), name="loan-reject"),
    path("details/<int:loan_detail_id>/return/", LoanItemReturnView.as_view(), name="loan-item-return"),
]
