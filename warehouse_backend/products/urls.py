# products/urls.py

"""
PRODUCTS URLS

Mounted at /api/products/.
Inventory sub-routes are listed before inventory/<barcode>/ so fixed
segments (export, low-stock, ...) are never read as barcodes.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from products.views import (
    AddStockView,
    BulkUploadHistoryView,
    BulkUploadView,
    CategoryViewSet,
    InventoryByWarehouseView,
    InventoryExportView,
    InventoryListView,
    LedgerEntryViewSet,
    LowStockView,
    ProductTimelineView,
    ProductTrackingView,
    ProductViewSet,
    StockBatchViewSet,
    TimelineSummaryView,
)

router = DefaultRouter()

router.register(r"categories", CategoryViewSet, basename="categories")
router.register(r"products", ProductViewSet, basename="products")
router.register(r"stock-batches", StockBatchViewSet, basename="stock-batches")
router.register(r"ledger", LedgerEntryViewSet, basename="ledger")

urlpatterns = [
    path("inventory/", InventoryListView.as_view(), name="inventory-list"),
    path("inventory/add-stock/", AddStockView.as_view(), name="inventory-add-stock"),
    path("inventory/export/", InventoryExportView.as_view(), name="inventory-export"),
    path("inventory/low-stock/", LowStockView.as_view(), name="inventory-low-stock"),
    path(
        "inventory/by-warehouse/<str:code>/",
        InventoryByWarehouseView.as_view(),
        name="inventory-by-warehouse",
    ),
    path("inventory/<str:barcode>/", ProductTrackingView.as_view(), name="inventory-product"),
    path("timeline/", TimelineSummaryView.as_view(), name="timeline-summary"),
    path("timeline/<str:barcode>/", ProductTimelineView.as_view(), name="timeline-product"),
    path("bulk-upload/", BulkUploadView.as_view(), name="bulk-upload"),
    path("bulk-upload/history/", BulkUploadHistoryView.as_view(), name="bulk-upload-history"),
    path("", include(router.urls)),
]
