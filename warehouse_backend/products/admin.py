# products/admin.py
"""
=====================================================
PATH: products/admin.py
=====================================================

Admin rules (ledger-safe):

- Products and categories are editable master data.
- StockBatch and LedgerEntry are read-only here: stock only moves through
  products.services so every change keeps its ledger row.
"""

from django.contrib import admin

from products.models import BulkUpload, Category, LedgerEntry, Product, StockBatch


class _ReadOnlyAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "created_at")
    search_fields = ("name",)


class StockBatchInline(admin.TabularInline):
    model = StockBatch
    extra = 0
    can_delete = False
    fields = ("warehouse", "source_type", "qty_initial", "qty_available", "status", "created_at")
    readonly_fields = fields
    ordering = ("-created_at",)

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("barcode", "name", "variant", "category", "price", "is_active")
    list_filter = ("is_active", "category")
    search_fields = ("barcode", "name", "variant")
    inlines = [StockBatchInline]


@admin.register(StockBatch)
class StockBatchAdmin(_ReadOnlyAdmin):
    list_display = ("product", "warehouse", "source_type", "qty_initial", "qty_available", "status", "created_at")
    list_filter = ("status", "source_type", "warehouse")
    search_fields = ("product__barcode", "product__name", "source_ref")


@admin.register(LedgerEntry)
class LedgerEntryAdmin(_ReadOnlyAdmin):
    list_display = ("event_time", "movement_type", "direction", "barcode", "location_code", "qty", "reference")
    list_filter = ("movement_type", "direction", "location_code")
    search_fields = ("barcode", "product_name", "reference")


@admin.register(BulkUpload)
class BulkUploadAdmin(_ReadOnlyAdmin):
    list_display = ("file_name", "warehouse", "total_rows", "success_rows", "failed_rows", "created_at")
