# warehouses/serializers.py

from rest_framework import serializers

from warehouses.models import Executive, LogisticsPartner, Warehouse


class WarehouseSerializer(serializers.ModelSerializer):
    class Meta:
        model = Warehouse
        fields = [
            "id",
            "code",
            "name",
            "kind",
            "address",
            "city",
            "phone",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]

    def validate_code(self, value):
        code = (value or "").strip().upper()
        if not code:
            raise serializers.ValidationError("code cannot be blank")
        qs = Warehouse.objects.filter(code=code)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("A warehouse with this code already exists.")
        return code


class LogisticsPartnerSerializer(serializers.ModelSerializer):
    class Meta:
        model = LogisticsPartner
        fields = ["id", "name", "contact", "is_active", "created_at"]
        read_only_fields = ["id", "created_at"]


class ExecutiveSerializer(serializers.ModelSerializer):
    warehouse_code = serializers.CharField(source="warehouse.code", read_only=True, default=None)

    class Meta:
        model = Executive
        fields = ["id", "name", "warehouse", "warehouse_code", "is_active", "created_at"]
        read_only_fields = ["id", "warehouse_code", "created_at"]
