# returns/serializers.py

from rest_framework import serializers

from returns.models import Return


class ReturnSerializer(serializers.ModelSerializer):
    warehouse_code = serializers.CharField(source="warehouse.code", read_only=True)
    reference = serializers.CharField(read_only=True)
    created_by_name = serializers.SerializerMethodField()

    class Meta:
        model = Return
        fields = [
            "id",
            "order_ref",
            "awb",
            "product",
            "product_name",
            "barcode",
            "warehouse",
            "warehouse_code",
            "quantity",
            "has_parts",
            "return_reason",
            "condition",
            "status",
            "stock_added",
            "processed_by",
            "notes",
            "reference",
            "created_by",
            "created_by_name",
            "submitted_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_created_by_name(self, obj):
        user = obj.created_by
        return user.display_name if user else None


class ReturnCreateSerializer(serializers.Serializer):
    """
    Product as barcode, id or dropdown label (`product_type` is the legacy
    name field and is accepted as a fallback).
    """

    barcode = serializers.CharField(required=False, allow_blank=True)
    product = serializers.CharField(required=False, allow_blank=True)
    product_type = serializers.CharField(required=False, allow_blank=True)
    warehouse = serializers.CharField()
    quantity = serializers.IntegerField(min_value=1, default=1)
    condition = serializers.ChoiceField(choices=Return.Condition.choices, default=Return.Condition.GOOD)
    order_ref = serializers.CharField(required=False, allow_blank=True, default="")
    awb = serializers.CharField(required=False, allow_blank=True, default="")
    has_parts = serializers.BooleanField(required=False, default=False)
    return_reason = serializers.CharField(required=False, allow_blank=True, default="")
    processed_by = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):
        ref = (attrs.get("barcode") or attrs.get("product") or attrs.get("product_type") or "").strip()
        if not ref:
            raise serializers.ValidationError({"barcode": "barcode or product is required"})
        attrs["product_ref"] = ref
        return attrs


class ReturnBulkSerializer(serializers.Serializer):
    returns = serializers.ListField(child=serializers.DictField(), allow_empty=False, max_length=500)


class ReturnStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Return.Status.choices)
    notes = serializers.CharField(required=False, allow_blank=True)
