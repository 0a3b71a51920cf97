"""Admin registration for catalog models."""

from django.contrib import admin
from inventory.selectors import stock_for_item

from .models import IHMember, InventoryHolder, Item, Sloc


@admin.register(Sloc)
class SlocAdmin(admin.ModelAdmin):
    list_display = ("sloc_id", "sloc_name", "is_active")
    search_fields = ("sloc_id", "sloc_name")
    list_filter = ("is_active",)


class IHMemberInline(admin.TabularInline):
    model = IHMember
    extra = 0
    fields = ("user", "is_primary")
    autocomplete_fields = ("user",)


@admin.register(InventoryHolder)
class InventoryHolderAdmin(admin.ModelAdmin):
    list_display = ("ih_id", "ih_name", "ih_type", "is_active")
    search_fields = ("ih_id", "ih_name")
    list_filter = ("ih_type", "is_active")
    inlines = [IHMemberInline]


@admin.register(Item)
class ItemAdmin(admin.ModelAdmin):
    list_display = ("item_id", "item_desc", "item_qty", "item_uom", "item_sloc", "item_ih", "item_expendable")
    search_fields = ("item_desc", "nusc_sn", "item_remarks")
    list_filter = ("item_expendable", "item_unloanable", "item_sloc", "item_ih")
    list_select_related = ("item_sloc", "item_ih")
    readonly_fields = ("pending_qty", "on_loan_qty", "net_qty")

    @admin.display(description="Pending")
    def pending_qty(self, obj):
        return stock_for_item(obj).pending if obj.pk else 0

    @admin.display(description="On loan")
    def on_loan_qty(self, obj):
        return stock_for_item(obj).on_loan if obj.pk else 0

    @admin.display(description="Net available")
    def net_qty(self, obj):
        return stock_for_item(obj).net_qty if obj.pk else obj.item_qty
