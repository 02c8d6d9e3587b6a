# damages/views.py

"""
DAMAGE & RECOVERY ENDPOINTS

POST /api/damage-recovery/damage/     log + FIFO deduction (DAMAGE OUT)
POST /api/damage-recovery/recover/    log + new RECOVER batch (IN)
GET  /api/damage-recovery/log/        filters: warehouse, action_type (both), date_from, date_to, search
GET  /api/damage-recovery/summary/    per warehouse x action: count, quantity
"""

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from backend.pagination import StandardPagination
from damages.serializers import DamageRecoveryLogSerializer, DamageRecoveryRequestSerializer
from damages.services import damage_summary, filtered_logs, record_damage, record_recovery
from permissions.roles import CAP_INVENTORY_ADJUST, CAP_INVENTORY_VIEW, CapabilityViewMixin
from products.models import Product
from products.serializers import LedgerEntrySerializer
from products.services.lookup import resolve_product
from products.services.stock_fifo import StockError
from warehouses.models import Warehouse
from warehouses.services import resolve_warehouse


class _DamageActionView(CapabilityViewMixin, APIView):
    default_capability = CAP_INVENTORY_ADJUST

    def _resolve(self, request):
        serializer = DamageRecoveryRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        product = resolve_product(data["product_ref"])
        warehouse = resolve_warehouse(data["warehouse_ref"])
        return product, warehouse, data


class DamageView(_DamageActionView):
    def post(self, request):
        try:
            product, warehouse, data = self._resolve(request)
            log, entry = record_damage(
                product=product,
                warehouse=warehouse,
                quantity=data["quantity"],
                reason=data["reason"],
                notes=data["notes"],
                user=request.user,
            )
        except (Product.DoesNotExist, Warehouse.DoesNotExist, StockError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(
            {
                "log": DamageRecoveryLogSerializer(log).data,
                "ledger": LedgerEntrySerializer(entry).data,
                "available": product.stock_at(warehouse),
            },
            status=status.HTTP_201_CREATED,
        )


class RecoverView(_DamageActionView):
    def post(self, request):
        try:
            product, warehouse, data = self._resolve(request)
            log, _batch, entry = record_recovery(
                product=product,
                warehouse=warehouse,
                quantity=data["quantity"],
                reason=data["reason"],
                notes=data["notes"],
                user=request.user,
            )
        except (Product.DoesNotExist, Warehouse.DoesNotExist, StockError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(
            {
                "log": DamageRecoveryLogSerializer(log).data,
                "ledger": LedgerEntrySerializer(entry).data,
                "available": product.stock_at(warehouse),
            },
            status=status.HTTP_201_CREATED,
        )


class DamageLogView(CapabilityViewMixin, APIView):
    default_capability = CAP_INVENTORY_VIEW

    def get(self, request):
        try:
            qs = filtered_logs(request.query_params)
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        paginator = StandardPagination()
        page = paginator.paginate_queryset(qs, request, view=self)
        return paginator.get_paginated_response(DamageRecoveryLogSerializer(page, many=True).data)


class DamageSummaryView(CapabilityViewMixin, APIView):
    default_capability = CAP_INVENTORY_VIEW

    def get(self, request):
        try:
            rows = damage_summary(request.query_params)
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        totals = {"damage": 0, "recover": 0}
        for row in rows:
            totals[row["action_type"]] += row["quantity"]
        return Response({"results": rows, "totals": totals})
