# products/serializers/__init__.py

from .category import CategorySerializer
from .inventory import AddStockSerializer, BulkUploadRequestSerializer, BulkUploadSerializer
from .ledger import LedgerEntrySerializer
from .product import ProductSerializer
from .stock_batch import StockBatchSerializer

__all__ = [
    "AddStockSerializer",
    "BulkUploadRequestSerializer",
    "BulkUploadSerializer",
    "CategorySerializer",
    "LedgerEntrySerializer",
    "ProductSerializer",
    "StockBatchSerializer",
]
