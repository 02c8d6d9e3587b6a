# products/serializers/ledger.py

from rest_framework import serializers

from products.models import LedgerEntry


class LedgerEntrySerializer(serializers.ModelSerializer):
    warehouse = serializers.CharField(source="location_code", read_only=True)
    performed_by_name = serializers.SerializerMethodField()
    signed_qty = serializers.IntegerField(read_only=True)

    class Meta:
        model = LedgerEntry
        fields = [
            "id",
            "event_time",
            "movement_type",
            "direction",
            "product",
            "barcode",
            "product_name",
            "warehouse",
            "qty",
            "signed_qty",
            "reference",
            "performed_by",
            "performed_by_name",
        ]
        read_only_fields = fields

    def get_performed_by_name(self, obj):
        user = obj.performed_by
        return user.display_name if user else None
