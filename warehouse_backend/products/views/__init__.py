# products/views/__init__.py

from .bulk_upload import BulkUploadHistoryView, BulkUploadView
from .category import CategoryViewSet
from .inventory import (
    AddStockView,
    InventoryByWarehouseView,
    InventoryExportView,
    InventoryListView,
    LowStockView,
    ProductTrackingView,
)
from .ledger import LedgerEntryViewSet
from .product import ProductViewSet
from .stock_batch import StockBatchViewSet
from .timeline import ProductTimelineView, TimelineSummaryView

__all__ = [
    "AddStockView",
    "BulkUploadHistoryView",
    "BulkUploadView",
    "CategoryViewSet",
    "InventoryByWarehouseView",
    "InventoryExportView",
    "InventoryListView",
    "LedgerEntryViewSet",
    "LowStockView",
    "ProductTimelineView",
    "ProductTrackingView",
    "ProductViewSet",
    "StockBatchViewSet",
    "TimelineSummaryView",
]
