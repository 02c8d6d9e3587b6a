"""
PATH: products/models/__init__.py

Products models export surface.
"""

from .bulk_upload import BulkUpload
from .category import Category
from .ledger import LedgerEntry
from .product import Product
from .stock_batch import StockBatch

__all__ = [
    "BulkUpload",
    "Category",
    "LedgerEntry",
    "Product",
    "StockBatch",
]
