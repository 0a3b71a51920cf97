"""DRF serializers for loans.

Input serializers only check shape (types and required fields); state
rules and stock checks live in ``loans.services``.
"""

from rest_framework import serializers

from .models import LoanItemDetail, LoanRequest
from .selectors import loan_summary


class LoanItemDetailSerializer(serializers.ModelSerializer):
    item_desc = serializers.CharField(source="item.item_desc", read_only=True)
    item_uom = serializers.CharField(source="item.item_uom", read_only=True)

    class Meta:
        model = LoanItemDetail
        fields = [
            "loan_detail_id",
            "item",
            "item_desc",
            "item_uom",
            "loan_qty",
            "loan_status",
            "item_sloc_at_loan",
            "item_ih_at_loan",
            "returned_at",
        ]
        read_only_fields = fields


class RequesterSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField(source="display_name")
    nusnet_id = serializers.CharField(allow_null=True)
    telegram_handle = serializers.CharField(allow_null=True)


class LoanRequestSerializer(serializers.ModelSerializer):
    """API representation of a loan request with its lines and a status summary."""

    requester = RequesterSerializer(read_only=True)
    loggie = serializers.SerializerMethodField(read_only=True)
    details = LoanItemDetailSerializer(many=True, read_only=True)
    summary = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = LoanRequest
        fields = [
            "ref_no",
            "loan_date_start",
            "loan_date_end",
            "requester",
            "loggie",
            "organisation",
            "event_details",
            "event_location",
            "request_status",
            "created_at",
            "details",
            "summary",
        ]
        read_only_fields = fields

    def get_loggie(self, obj: LoanRequest):
        return obj.loggie.display_name if obj.loggie_id else None

    def get_summary(self, obj: LoanRequest) -> dict:
        return loan_summary(obj)


class LoanLineInputSerializer(serializers.Serializer):
    item_id = serializers.IntegerField()
    loan_qty = serializers.IntegerField()


class NewRequesterInputSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    nusnet = serializers.CharField(max_length=16)
    telegram_handle = serializers.CharField(max_length=64, required=False, allow_blank=True, allow_null=True)


class LoanUpdateInputSerializer(serializers.Serializer):
    loan_date_start = serializers.CharField()
    loan_date_end = serializers.CharField()
    items = LoanLineInputSerializer(many=True)
    organisation = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    event_details = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    event_location = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class LoanCreateInputSerializer(LoanUpdateInputSerializer):
    requester_id = serializers.IntegerField(required=False, allow_null=True)
    new_requester = NewRequesterInputSerializer(required=False, allow_null=True)
