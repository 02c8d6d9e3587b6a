# transfers/admin.py

from django.contrib import admin

from transfers.models import SelfTransfer, SelfTransferItem


class SelfTransferItemInline(admin.TabularInline):
    model = SelfTransferItem
    extra = 0
    readonly_fields = ("product", "product_name", "barcode", "qty")
    can_delete = False


@admin.register(SelfTransfer)
class SelfTransferAdmin(admin.ModelAdmin):
    list_display = ("reference", "created_at", "source", "destination", "transfer_type", "order_ref")
    list_filter = ("transfer_type", "source", "destination")
    search_fields = ("reference", "order_ref", "awb")
    inlines = [SelfTransferItemInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
