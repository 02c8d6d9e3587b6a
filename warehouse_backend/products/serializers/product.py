# products/serializers/product.py

"""
PRODUCT SERIALIZER

Purpose:
- Product master data (barcode identity, name, variant, pricing).
- Stock is derived from StockBatch only (single source of truth); list
  views annotate total_stock, other callers fall back to a DB sum.
"""

from django.db.models import Sum
from rest_framework import serializers

from products.models import Category, Product, StockBatch


class ProductSerializer(serializers.ModelSerializer):
    """
    GUARANTEES:
    - barcode is unique (case-sensitive, trimmed)
    - Stock is aggregated from active StockBatch rows, never stored
    - price / cost_price are non-negative
    """

    category = serializers.PrimaryKeyRelatedField(
        queryset=Category.objects.all(), required=False, allow_null=True
    )
    category_name = serializers.CharField(source="category.name", read_only=True, default=None)
    label = serializers.CharField(read_only=True)
    total_stock = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "barcode",
            "name",
            "variant",
            "label",
            "description",
            "category",
            "category_name",
            "price",
            "cost_price",
            "weight",
            "dimensions",
            "total_stock",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "label", "category_name", "total_stock", "created_at", "updated_at"]

    def validate_barcode(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("barcode is required")
        qs = Product.objects.filter(barcode=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("A product with this barcode already exists.")
        return value

    def validate_name(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("name is required")
        return value

    def validate_price(self, value):
        if value is None or value < 0:
            raise serializers.ValidationError("price must be non-negative")
        return value

    def validate_cost_price(self, value):
        if value is None or value < 0:
            raise serializers.ValidationError("cost_price must be non-negative")
        return value

    def get_total_stock(self, obj) -> int:
        annotated = getattr(obj, "total_stock", None)
        if annotated is not None:
            return int(annotated or 0)
        total = StockBatch.objects.filter(
            product=obj, status=StockBatch.Status.ACTIVE
        ).aggregate(total=Sum("qty_available"))["total"]
        return int(total or 0)
