# dispatches/serializers.py

from rest_framework import serializers

from dispatches.models import PAYMENT_MODES, Dispatch, DispatchItem


class DispatchItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = DispatchItem
        fields = ["id", "product", "product_name", "barcode", "variant", "qty"]
        read_only_fields = fields


class DispatchSerializer(serializers.ModelSerializer):
    warehouse_code = serializers.CharField(source="warehouse.code", read_only=True)
    items = DispatchItemSerializer(many=True, read_only=True)
    total_qty = serializers.IntegerField(read_only=True)
    reference = serializers.CharField(read_only=True)
    created_by_name = serializers.SerializerMethodField()

    class Meta:
        model = Dispatch
        fields = [
            "id",
            "warehouse",
            "warehouse_code",
            "order_ref",
            "customer",
            "awb",
            "logistics",
            "parcel_type",
            "payment_mode",
            "invoice_amount",
            "processed_by",
            "remarks",
            "length",
            "width",
            "height",
            "actual_weight",
            "status",
            "items",
            "total_qty",
            "reference",
            "created_by",
            "created_by_name",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_created_by_name(self, obj):
        return obj.created_by.display_name if obj.created_by else None


class DispatchLineInputSerializer(serializers.Serializer):
    barcode = serializers.CharField(required=False, allow_blank=True)
    product_id = serializers.CharField(required=False, allow_blank=True)
    product = serializers.CharField(required=False, allow_blank=True)
    qty = serializers.IntegerField(min_value=1)

    def validate(self, attrs):
        if not any((attrs.get(k) or "").strip() for k in ("barcode", "product_id", "product")):
            raise serializers.ValidationError("barcode, product_id or product is required")
        return attrs


class DispatchCreateSerializer(serializers.Serializer):
    """
    Multi-line: {"warehouse": "WH1", "items": [{"barcode": "...", "qty": 2}, ...]}
    Single-line: {"warehouse": "WH1", "product": "Name | Variant | 8901", "qty": 2}
    """

    warehouse = serializers.CharField()
    items = DispatchLineInputSerializer(many=True, required=False)
    product = serializers.CharField(required=False, allow_blank=True)
    barcode = serializers.CharField(required=False, allow_blank=True)
    qty = serializers.IntegerField(required=False, min_value=1)

    order_ref = serializers.CharField(required=False, allow_blank=True, default="")
    customer = serializers.CharField(required=False, allow_blank=True, default="")
    awb = serializers.CharField(required=False, allow_blank=True, default="")
    logistics = serializers.CharField(required=False, allow_blank=True, default="")
    parcel_type = serializers.CharField(required=False, allow_blank=True, default="Forward")
    payment_mode = serializers.CharField(required=False, allow_blank=True, default="")
    invoice_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, default=0)
    processed_by = serializers.CharField(required=False, allow_blank=True, default="")
    remarks = serializers.CharField(required=False, allow_blank=True, default="")
    length = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    width = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    height = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    actual_weight = serializers.DecimalField(max_digits=10, decimal_places=3, required=False, allow_null=True)

    def validate_payment_mode(self, value):
        value = (value or "").strip()
        if value and value not in PAYMENT_MODES:
            raise serializers.ValidationError(f"payment_mode must be one of: {', '.join(PAYMENT_MODES)}")
        return value

    def validate(self, attrs):
        items = attrs.pop("items", None) or []
        single = (attrs.pop("barcode", "") or attrs.pop("product", "") or "").strip()
        attrs.pop("product", None)
        qty = attrs.pop("qty", None)

        if not items and single:
            items = [{"barcode": single, "qty": qty or 1}]
        if not items:
            raise serializers.ValidationError({"items": "At least one product line is required"})

        attrs["parcel_type"] = (attrs.get("parcel_type") or "").strip() or "Forward"
        attrs["items"] = items
        return attrs


class DispatchStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Dispatch.Status.choices)
    processed_by = serializers.CharField(required=False, allow_blank=True)
    remarks = serializers.CharField(required=False, allow_blank=True)


class DispatchDamageSerializer(serializers.Serializer):
    barcode = serializers.CharField(required=False, allow_blank=True)
    product = serializers.CharField(required=False, allow_blank=True)
    quantity = serializers.IntegerField(min_value=1, default=1)
    reason = serializers.CharField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):
        ref = (attrs.get("barcode") or attrs.get("product") or "").strip()
        if not ref:
            raise serializers.ValidationError({"barcode": "barcode or product is required"})
        attrs["product_ref"] = ref
        return attrs
