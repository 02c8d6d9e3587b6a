# products/filters.py

import django_filters

from products.models import LedgerEntry, StockBatch


class StockBatchFilter(django_filters.FilterSet):
    barcode = django_filters.CharFilter(field_name="product__barcode")
    warehouse = django_filters.CharFilter(field_name="warehouse__code", lookup_expr="iexact")
    date_from = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    date_to = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")

    class Meta:
        model = StockBatch
        fields = ["product", "barcode", "warehouse", "status", "source_type", "date_from", "date_to"]


class LedgerEntryFilter(django_filters.FilterSet):
    warehouse = django_filters.CharFilter(field_name="location_code", lookup_expr="iexact")
    reference = django_filters.CharFilter(lookup_expr="icontains")
    date_from = django_filters.DateFilter(field_name="event_time", lookup_expr="date__gte")
    date_to = django_filters.DateFilter(field_name="event_time", lookup_expr="date__lte")

    class Meta:
        model = LedgerEntry
        fields = [
            "barcode",
            "warehouse",
            "movement_type",
            "direction",
            "reference",
            "date_from",
            "date_to",
        ]
