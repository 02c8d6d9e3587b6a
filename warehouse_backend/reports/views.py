# reports/views.py

"""
REPORT ENDPOINTS (reports.view)

GET /api/reports/dashboard/           headline KPIs
GET /api/reports/warehouse-volume/    per-location stock and movement totals
GET /api/reports/activity/            latest ledger rows (limit, warehouse); reports.view OR inventory.view
GET /api/reports/dispatch-heatmap/    ?days=30
GET /api/reports/search/              ?q=&type=&limit=
"""

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from backend.params import int_param
from permissions.roles import CAP_INVENTORY_VIEW, CAP_REPORTS_VIEW, CapabilityViewMixin, HasAnyCapability
from products.serializers import LedgerEntrySerializer
from reports.services import (
    SEARCH_TYPES,
    dashboard_kpis,
    dispatch_heatmap,
    global_search,
    recent_activity,
    warehouse_volume,
)


class ReportView(CapabilityViewMixin, APIView):
    default_capability = CAP_REPORTS_VIEW


class DashboardView(ReportView):
    def get(self, request):
        return Response(dashboard_kpis())


class WarehouseVolumeView(ReportView):
    def get(self, request):
        return Response({"results": warehouse_volume()})


class ActivityView(APIView):
    permission_classes = [IsAuthenticated, HasAnyCapability]
    required_any_capabilities = {CAP_REPORTS_VIEW, CAP_INVENTORY_VIEW}

    def get(self, request):
        try:
            limit = int_param(request.query_params, "limit", 20, minimum=1, maximum=100)
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        warehouse = (request.query_params.get("warehouse") or "").strip()
        rows = recent_activity(limit=limit, warehouse=warehouse)
        return Response({"results": LedgerEntrySerializer(rows, many=True).data})


class DispatchHeatmapView(ReportView):
    def get(self, request):
        try:
            days = int_param(request.query_params, "days", 30, minimum=1, maximum=365)
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(dispatch_heatmap(days=days))


class GlobalSearchView(ReportView):
    def get(self, request):
        params = request.query_params
        term = (params.get("q") or params.get("query") or "").strip()
        if len(term) < 2:
            return Response(
                {"detail": "query must be at least 2 characters"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        kind = (params.get("type") or "all").strip().lower()
        if kind == "all":
            types = SEARCH_TYPES
        elif kind in SEARCH_TYPES:
            types = (kind,)
        else:
            return Response(
                {"detail": f"type must be one of: all, {', '.join(SEARCH_TYPES)}"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            limit = int_param(params, "limit", 10, minimum=1, maximum=50)
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(global_search(term, types=types, limit=limit))
