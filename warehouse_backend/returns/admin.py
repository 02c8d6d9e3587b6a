# returns/admin.py

from django.contrib import admin

from returns.models import Return


@admin.register(Return)
class ReturnAdmin(admin.ModelAdmin):
    list_display = ("id", "submitted_at", "warehouse", "barcode", "quantity", "condition", "status", "stock_added")
    list_filter = ("condition", "status", "warehouse")
    search_fields = ("barcode", "product_name", "awb", "order_ref")
    readonly_fields = ("stock_added",)
