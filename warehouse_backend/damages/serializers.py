# damages/serializers.py

from rest_framework import serializers

from damages.models import DamageRecoveryLog


class DamageRecoveryRequestSerializer(serializers.Serializer):
    """
    Accepts the product as barcode, id or dropdown label and the warehouse as
    code, id or name. `inventory_location` is accepted as an
    alias for the warehouse.
    """

    product = serializers.CharField(required=False, allow_blank=True)
    barcode = serializers.CharField(required=False, allow_blank=True)
    warehouse = serializers.CharField(required=False, allow_blank=True)
    inventory_location = serializers.CharField(required=False, allow_blank=True)
    quantity = serializers.IntegerField(min_value=1, default=1)
    reason = serializers.CharField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):
        product = (attrs.get("barcode") or attrs.get("product") or "").strip()
        warehouse = (attrs.get("warehouse") or attrs.get("inventory_location") or "").strip()
        errors = {}
        if not product:
            errors["barcode"] = "barcode or product is required"
        if not warehouse:
            errors["warehouse"] = "warehouse is required"
        if errors:
            raise serializers.ValidationError(errors)
        attrs["product_ref"] = product
        attrs["warehouse_ref"] = warehouse
        return attrs


class DamageRecoveryLogSerializer(serializers.ModelSerializer):
    warehouse_code = serializers.CharField(source="warehouse.code", read_only=True)
    reference = serializers.CharField(read_only=True)
    reported_by_name = serializers.SerializerMethodField()

    class Meta:
        model = DamageRecoveryLog
        fields = [
            "id",
            "product",
            "product_name",
            "barcode",
            "warehouse",
            "warehouse_code",
            "action_type",
            "quantity",
            "dispatch",
            "reason",
            "notes",
            "reference",
            "reported_by",
            "reported_by_name",
            "created_at",
        ]
        read_only_fields = fields

    def get_reported_by_name(self, obj):
        return obj.reported_by.display_name if obj.reported_by else None
