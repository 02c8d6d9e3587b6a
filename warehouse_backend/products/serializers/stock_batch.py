# products/serializers/stock_batch.py

"""
STOCK BATCH SERIALIZER (READ-ONLY)

Batches are created and drawn down only by products.services; the API
exposes them for inspection.
"""

from rest_framework import serializers

from products.models import StockBatch


class StockBatchSerializer(serializers.ModelSerializer):
    barcode = serializers.CharField(source="product.barcode", read_only=True)
    product_name = serializers.CharField(source="product.name", read_only=True)
    warehouse_code = serializers.CharField(source="warehouse.code", read_only=True)
    qty_consumed = serializers.IntegerField(read_only=True)

    class Meta:
        model = StockBatch
        fields = [
            "id",
            "product",
            "barcode",
            "product_name",
            "warehouse",
            "warehouse_code",
            "source_type",
            "source_ref",
            "qty_initial",
            "qty_available",
            "qty_consumed",
            "unit_cost",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
