from django.contrib import admin

from .models import LoanItemDetail, LoanRequest


class LoanItemDetailInline(admin.TabularInline):
    model = LoanItemDetail
    extra = 0
    fields = ("item", "loan_qty", "loan_status", "item_sloc_at_loan", "item_ih_at_loan", "returned_at")
    readonly_fields = ("item_sloc_at_loan", "item_ih_at_loan", "returned_at")
    raw_id_fields = ("item",)


@admin.register(LoanRequest)
class LoanRequestAdmin(admin.ModelAdmin):
    list_display = ("ref_no", "requester", "request_status", "loan_date_start", "loan_date_end", "loggie")
    list_filter = ("request_status", "loan_date_start")
    search_fields = ("ref_no", "requester__first_name", "requester__nusnet_id", "organisation")
    date_hierarchy = "loan_date_start"
    raw_id_fields = ("requester", "loggie")
    inlines = [LoanItemDetailInline]


@admin.register(LoanItemDetail)
class LoanItemDetailAdmin(admin.ModelAdmin):
    list_display = ("loan_detail_id", "loan_request", "item", "loan_qty", "loan_status", "returned_at")
    list_filter = ("loan_status",)
    search_fields = ("item__item_desc", "loan_request__ref_no")
    raw_id_fields = ("loan_request", "item")
