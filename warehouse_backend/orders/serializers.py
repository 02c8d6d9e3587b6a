# orders/serializers.py

from rest_framework import serializers

from orders.models import Order


class OrderSerializer(serializers.ModelSerializer):
    warehouse_code = serializers.CharField(source="warehouse.code", read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "customer",
            "product_name",
            "quantity",
            "dimensions",
            "length",
            "width",
            "height",
            "awb",
            "order_ref",
            "warehouse",
            "warehouse_code",
            "status",
            "payment_mode",
            "invoice_amount",
            "remark",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class OrderCreateSerializer(serializers.Serializer):
    customer = serializers.CharField(max_length=255)
    product_name = serializers.CharField(max_length=255)
    quantity = serializers.IntegerField(min_value=1)
    warehouse = serializers.CharField()

    dimensions = serializers.CharField(required=False, allow_blank=True, default="")
    length = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    width = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    height = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    awb = serializers.CharField(required=False, allow_blank=True, default="")
    order_ref = serializers.CharField(required=False, allow_blank=True, default="")
    status = serializers.CharField(required=False, allow_blank=True, default="pending")
    payment_mode = serializers.CharField(required=False, allow_blank=True, default="")
    invoice_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, default=0)
    remark = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_status(self, value):
        return (value or "").strip() or "pending"


class OrderSearchSerializer(serializers.Serializer):
    tokens = serializers.ListField(
        child=serializers.CharField(allow_blank=True), required=False, default=list, max_length=20
    )


class OrderRemarkSerializer(serializers.Serializer):
    order_id = serializers.IntegerField(required=False)
    remark = serializers.CharField(required=False, allow_blank=True, default="")
