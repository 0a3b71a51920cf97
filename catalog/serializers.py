"""Serializers for the catalog app."""

from rest_framework import serializers

from .models import IHMember, InventoryHolder, Item, Sloc


class SlocSerializer(serializers.ModelSerializer):
    class Meta:
        model = Sloc
        fields = ["sloc_id", "sloc_name", "is_active"]


class PocSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    first_name = serializers.CharField()
    last_name = serializers.CharField()
    telegram_handle = serializers.CharField(allow_null=True)


class IHMemberSerializer(serializers.ModelSerializer):
    user = PocSerializer(read_only=True)

    class Meta:
        model = IHMember
        fields = ["user", "is_primary"]


class InventoryHolderSerializer(serializers.ModelSerializer):
    members = IHMemberSerializer(source="memberships", many=True, read_only=True)

    class Meta:
        model = InventoryHolder
        fields = ["ih_id", "ih_name", "ih_type", "is_active", "members"]


class CatalogueItemSerializer(serializers.ModelSerializer):
    """Catalogue row: item fields plus ledger figures and the holder's primary POC.

    Expects ``context["stock"]`` to map item ids to ``StockFigures``; views
    compute it once per page with ``inventory.selectors.stock_for_items``.
    """

    sloc_name = serializers.CharField(source="item_sloc.sloc_name", read_only=True)
    ih_name = serializers.CharField(source="item_ih.ih_name", read_only=True)
    ih_type = serializers.CharField(source="item_ih.ih_type", read_only=True)
    primary_poc = serializers.SerializerMethodField()
    pending_qty = serializers.SerializerMethodField()
    on_loan_qty = serializers.SerializerMethodField()
    total_qty = serializers.SerializerMethodField()
    net_qty = serializers.SerializerMethodField()

    class Meta:
        model = Item
        fields = [
            "item_id",
            "nusc_sn",
            "item_desc",
            "item_uom",
            "item_qty",
            "item_unloanable",
            "item_expendable",
            "item_sloc",
            "sloc_name",
            "item_ih",
            "ih_name",
            "ih_type",
            "primary_poc",
            "item_remarks",
            "item_purchase_date",
            "item_rfp_number",
            "item_image",
            "pending_qty",
            "on_loan_qty",
            "total_qty",
            "net_qty",
        ]
        read_only_fields = fields

    def _figures(self, obj: Item):
        return self.context["stock"][obj.item_id]

    def get_primary_poc(self, obj: Item):
        user = obj.item_ih.primary_member
        return PocSerializer(user).data if user else None

    def get_pending_qty(self, obj: Item) -> int:
        return self._figures(obj).pending

    def get_on_loan_qty(self, obj: Item) -> int:
        return self._figures(obj).on_loan

    def get_total_qty(self, obj: Item) -> int:
        return self._figures(obj).total_qty

    def get_net_qty(self, obj: Item) -> int:
        return self._figures(obj).net_qty


class ItemInputSerializer(serializers.Serializer):
    """Request shape for creating or editing an item."""

    item_desc = serializers.CharField(max_length=200)
    item_uom = serializers.CharField(max_length=32)
    item_qty = serializers.IntegerField()
    item_sloc = serializers.CharField(max_length=80)
    item_ih = serializers.CharField(max_length=80)
    nusc_sn = serializers.CharField(max_length=64, required=False, allow_blank=True, allow_null=True)
    item_remarks = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    item_purchase_date = serializers.DateField(required=False, allow_null=True)
    item_rfp_number = serializers.CharField(max_length=64, required=False, allow_blank=True, allow_null=True)
    item_image = serializers.CharField(max_length=500, required=False, allow_blank=True, allow_null=True)
    item_unloanable = serializers.BooleanField(required=False, default=False)
    item_expendable = serializers.BooleanField(required=False, default=False)


class ItemUpdateInputSerializer(ItemInputSerializer):
    delete_previous_image = serializers.BooleanField(required=False, default=False)


class NameInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=120)


class MembershipInputSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()
    is_primary = serializers.BooleanField(required=False, default=False)
