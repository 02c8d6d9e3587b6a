# transfers/serializers.py

from rest_framework import serializers

from dispatches.serializers import DispatchLineInputSerializer
from transfers.models import SelfTransfer, SelfTransferItem


class SelfTransferItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = SelfTransferItem
        fields = ["id", "product", "product_name", "barcode", "qty"]
        read_only_fields = fields


class SelfTransferSerializer(serializers.ModelSerializer):
    source_code = serializers.CharField(source="source.code", read_only=True)
    destination_code = serializers.CharField(source="destination.code", read_only=True)
    items = SelfTransferItemSerializer(many=True, read_only=True)
    total_qty = serializers.IntegerField(read_only=True)
    created_by_name = serializers.SerializerMethodField()

    class Meta:
        model = SelfTransfer
        fields = [
            "id",
            "reference",
            "transfer_type",
            "order_ref",
            "awb",
            "source",
            "source_code",
            "destination",
            "destination_code",
            "logistics",
            "payment_mode",
            "executive",
            "invoice_amount",
            "weight",
            "dimensions",
            "remarks",
            "items",
            "total_qty",
            "created_by",
            "created_by_name",
            "created_at",
        ]
        read_only_fields = fields

    def get_created_by_name(self, obj):
        user = obj.created_by
        return user.display_name if user else None


class SelfTransferCreateSerializer(serializers.Serializer):
    """
    {"source": "WH1", "destination": "ST1", "order_ref": "TR-1",
     "items": [{"barcode": "...", "qty": 2}, ...]}

    source_warehouse/source_store and destination_warehouse/destination_store
    are accepted as aliases.
    """

    source = serializers.CharField(required=False, allow_blank=True)
    source_warehouse = serializers.CharField(required=False, allow_blank=True)
    source_store = serializers.CharField(required=False, allow_blank=True)
    destination = serializers.CharField(required=False, allow_blank=True)
    destination_warehouse = serializers.CharField(required=False, allow_blank=True)
    destination_store = serializers.CharField(required=False, allow_blank=True)

    order_ref = serializers.CharField(required=False, allow_blank=True, default="")
    items = DispatchLineInputSerializer(many=True, required=False)

    awb = serializers.CharField(required=False, allow_blank=True, default="")
    logistics = serializers.CharField(required=False, allow_blank=True, default="")
    payment_mode = serializers.CharField(required=False, allow_blank=True, default="")
    executive = serializers.CharField(required=False, allow_blank=True, default="")
    invoice_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, default=0)
    weight = serializers.DecimalField(max_digits=10, decimal_places=3, required=False, allow_null=True)
    dimensions = serializers.CharField(required=False, allow_blank=True, default="")
    remarks = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):
        source = ""
        for key in ("source", "source_warehouse", "source_store"):
            source = source or (attrs.pop(key, "") or "").strip()
        destination = ""
        for key in ("destination", "destination_warehouse", "destination_store"):
            destination = destination or (attrs.pop(key, "") or "").strip()

        errors = {}
        if not source or not destination:
            errors["source"] = "Source and destination locations are required"
        elif source.upper() == destination.upper():
            errors["destination"] = "Source and destination cannot be the same"
        if not (attrs.get("order_ref") or "").strip():
            errors["order_ref"] = "Order reference is required"
        if not attrs.get("items"):
            errors["items"] = "At least one product line is required"
        if errors:
            raise serializers.ValidationError(errors)

        attrs["source_ref"] = source
        attrs["destination_ref"] = destination
        return attrs
