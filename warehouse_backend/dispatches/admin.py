# dispatches/admin.py

from django.contrib import admin

from dispatches.models import Dispatch, DispatchItem


class DispatchItemInline(admin.TabularInline):
    model = DispatchItem
    extra = 0
    readonly_fields = ("product", "product_name", "barcode", "variant", "qty")
    can_delete = False


@admin.register(Dispatch)
class DispatchAdmin(admin.ModelAdmin):
    list_display = ("id", "warehouse", "order_ref", "awb", "customer", "status", "created_at")
    list_filter = ("status", "warehouse", "payment_mode")
    search_fields = ("order_ref", "awb", "customer")
    inlines = [DispatchItemInline]

    # Stock moves only through the API services.
    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
