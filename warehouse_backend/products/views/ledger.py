# products/views/ledger.py

from rest_framework import viewsets

from permissions.roles import CAP_INVENTORY_VIEW, CapabilityViewMixin
from products.filters import LedgerEntryFilter
from products.models import LedgerEntry
from products.serializers import LedgerEntrySerializer


class LedgerEntryViewSet(CapabilityViewMixin, viewsets.ReadOnlyModelViewSet):
    """Append-only ledger, newest first. Filters: barcode, warehouse, movement_type, direction, reference, dates."""

    serializer_class = LedgerEntrySerializer
    default_capability = CAP_INVENTORY_VIEW
    filterset_class = LedgerEntryFilter

    def get_queryset(self):
        return LedgerEntry.objects.select_related("performed_by").order_by("-event_time", "-id")
