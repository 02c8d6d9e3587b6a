# products/serializers/inventory.py

"""
INVENTORY REQUEST SERIALIZERS

Input validation for stock entry and bulk upload. Quantities are whole
units; the services re-check every rule inside the transaction.
"""

from rest_framework import serializers

from products.models import BulkUpload, StockBatch


class AddStockSerializer(serializers.Serializer):
    warehouse = serializers.CharField()
    barcode = serializers.CharField(required=False, allow_blank=True)
    product = serializers.CharField(
        required=False,
        allow_blank=True,
        help_text='Product id, barcode or "Name | Variant | Barcode" label.',
    )
    product_name = serializers.CharField(required=False, allow_blank=True)
    variant = serializers.CharField(required=False, allow_blank=True, default="")
    qty = serializers.IntegerField(min_value=1)
    source_type = serializers.ChoiceField(
        choices=sorted(StockBatch.ENTRY_SOURCES),
        default=StockBatch.SourceType.OPENING,
    )
    unit_cost = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True
    )

    def validate(self, attrs):
        if not (attrs.get("barcode") or "").strip() and not (attrs.get("product") or "").strip():
            raise serializers.ValidationError({"barcode": "barcode or product is required"})
        return attrs


class BulkUploadRequestSerializer(serializers.Serializer):
    """Either a CSV `file` or a JSON `rows` list."""

    warehouse = serializers.CharField()
    file = serializers.FileField(required=False)
    rows = serializers.ListField(child=serializers.DictField(), required=False, allow_empty=False)

    def validate(self, attrs):
        if not attrs.get("file") and not attrs.get("rows"):
            raise serializers.ValidationError({"file": "Upload a CSV file or send rows"})
        return attrs


class BulkUploadSerializer(serializers.ModelSerializer):
    warehouse_code = serializers.CharField(source="warehouse.code", read_only=True)
    uploaded_by_name = serializers.SerializerMethodField()

    class Meta:
        model = BulkUpload
        fields = [
            "id",
            "file_name",
            "warehouse",
            "warehouse_code",
            "total_rows",
            "success_rows",
            "failed_rows",
            "total_quantity",
            "errors",
            "uploaded_by",
            "uploaded_by_name",
            "created_at",
        ]
        read_only_fields = fields

    def get_uploaded_by_name(self, obj):
        return obj.uploaded_by.display_name if obj.uploaded_by else None
