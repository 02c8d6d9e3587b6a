# warehouses/views.py

"""
WAREHOUSE / LOOKUP VIEWSETS

/api/warehouses/           list (any authenticated user; dropdowns need it) / CRUD (warehouses.manage)
/api/logistics/            logistics partners
/api/executives/           dispatch executives

DELETE deactivates instead of removing (batches + ledger reference warehouses).
"""

from django.db.models import Q
from rest_framework import status, viewsets
from rest_framework.response import Response

from permissions.roles import CAP_WAREHOUSES_MANAGE, CapabilityViewMixin
from warehouses.models import Executive, LogisticsPartner, Warehouse
from warehouses.serializers import (
    ExecutiveSerializer,
    LogisticsPartnerSerializer,
    WarehouseSerializer,
)


class _LookupViewSet(CapabilityViewMixin, viewsets.ModelViewSet):
    """Reads are open to any authenticated user; writes need warehouses.manage."""

    default_capability = CAP_WAREHOUSES_MANAGE
    capability_map = {"list": None, "retrieve": None}
    pagination_class = None
    search_fields: tuple[str, ...] = ("name",)

    def get_queryset(self):
        qs = self.queryset.all()
        params = self.request.query_params

        include_inactive = (params.get("include_inactive") or "").strip().lower()
        if include_inactive not in {"1", "true", "yes"}:
            qs = qs.filter(is_active=True)

        search = (params.get("search") or "").strip()
        if search:
            cond = Q()
            for field in self.search_fields:
                cond |= Q(**{f"{field}__icontains": search})
            qs = qs.filter(cond)

        return qs

    def destroy(self, request, *args, **kwargs):
        obj = self.get_object()
        obj.is_active = False
        obj.save(update_fields=["is_active"])
        return Response(status=status.HTTP_204_NO_CONTENT)


class WarehouseViewSet(_LookupViewSet):
    queryset = Warehouse.objects.all().order_by("code")
    serializer_class = WarehouseSerializer
    search_fields = ("code", "name", "city")


class LogisticsPartnerViewSet(_LookupViewSet):
    queryset = LogisticsPartner.objects.all().order_by("name")
    serializer_class = LogisticsPartnerSerializer


class ExecutiveViewSet(_LookupViewSet):
    queryset = Executive.objects.select_related("warehouse").order_by("name")
    serializer_class = ExecutiveSerializer

    def get_queryset(self):
        qs = super().get_queryset()
        warehouse = (self.request.query_params.get("warehouse") or "").strip()
        if warehouse:
            qs = qs.filter(warehouse__code__iexact=warehouse)
        return qs
