# products/views/stock_batch.py

"""
STOCK BATCH VIEWSET (READ-ONLY)

/api/products/stock-batches/?barcode=&warehouse=&status=&source_type=&date_from=&date_to=

Batches are mutated only by the stock services (stock entry, dispatch,
damage, returns, transfers); there is no write endpoint.
"""

from rest_framework import viewsets

from permissions.roles import CAP_INVENTORY_VIEW, CapabilityViewMixin
from products.filters import StockBatchFilter
from products.models import StockBatch
from products.serializers import StockBatchSerializer


class StockBatchViewSet(CapabilityViewMixin, viewsets.ReadOnlyModelViewSet):
    serializer_class = StockBatchSerializer
    default_capability = CAP_INVENTORY_VIEW
    filterset_class = StockBatchFilter

    def get_queryset(self):
        return StockBatch.objects.select_related("product", "warehouse").order_by(
            "-created_at", "-id"
        )
