# products/views/timeline.py

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from permissions.roles import CAP_INVENTORY_VIEW, CapabilityViewMixin
from products.services.timeline import product_timeline, timeline_summary


class ProductTimelineView(CapabilityViewMixin, APIView):
    """
    GET /api/products/timeline/<barcode>/?warehouse=ALL&date_from=&date_to=&limit=

    Ledger replay with running balance, newest first.
    """

    default_capability = CAP_INVENTORY_VIEW

    def get(self, request, barcode=None):
        try:
            data = product_timeline(barcode, request.query_params)
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(data)


class TimelineSummaryView(CapabilityViewMixin, APIView):
    default_capability = CAP_INVENTORY_VIEW

    def get(self, request):
        warehouse = (request.query_params.get("warehouse") or "").strip()
        return Response({"results": timeline_summary(warehouse=warehouse)})
