# products/views/inventory.py

"""
======================================================
PATH: products/views/inventory.py
======================================================
INVENTORY ENDPOINTS

POST /api/products/inventory/add-stock/                 stock entry (batch + ledger IN)
GET  /api/products/inventory/                           grouped per product+warehouse (+ stats)
GET  /api/products/inventory/by-warehouse/<code>/       same, one warehouse
GET  /api/products/inventory/export/                    CSV, same filters
GET  /api/products/inventory/low-stock/                 stock <= LOW_STOCK_THRESHOLD
GET  /api/products/inventory/<barcode>/                 per-warehouse stock + batches
"""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError
from django.http import HttpResponse
from django.utils import timezone
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from backend.pagination import StandardPagination
from permissions.roles import CAP_INVENTORY_EDIT, CAP_INVENTORY_VIEW, CapabilityViewMixin
from products.models import Product
from products.serializers import AddStockSerializer, LedgerEntrySerializer, StockBatchSerializer
from products.services.inventory import (
    InventoryFilterError,
    InventoryFilters,
    grouped_inventory,
    inventory_stats,
    low_stock_rows,
    low_stock_threshold,
    product_tracking,
    serialize_row,
    write_inventory_csv,
)
from products.services.lookup import resolve_product
from products.services.stock_fifo import StockError
from products.services.stock_intake import add_stock_entry
from warehouses.models import Warehouse
from warehouses.services import resolve_warehouse

logger = logging.getLogger(__name__)


class _InventoryView(CapabilityViewMixin, APIView):
    default_capability = CAP_INVENTORY_VIEW


class InventoryListView(_InventoryView):
    def _filters(self, request, **overrides):
        return InventoryFilters.from_params(request.query_params, **overrides)

    def get(self, request, **overrides):
        try:
            filters = self._filters(request, **overrides)
        except InventoryFilterError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        rows = grouped_inventory(filters)
        paginator = StandardPagination()
        page = paginator.paginate_queryset(rows, request, view=self)

        response = paginator.get_paginated_response([serialize_row(r) for r in page])
        response.data["stats"] = inventory_stats(filters)
        return response


class InventoryByWarehouseView(InventoryListView):
    def get(self, request, code=None):
        try:
            warehouse = resolve_warehouse(code)
        except Warehouse.DoesNotExist as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        return super().get(request, warehouse=warehouse.code)


class InventoryExportView(_InventoryView):
    def get(self, request):
        try:
            filters = InventoryFilters.from_params(request.query_params)
        except InventoryFilterError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        stamp = timezone.localtime().strftime("%Y%m%d_%H%M%S")
        response = HttpResponse(content_type="text/csv")
        response["Content-Disposition"] = f'attachment; filename="inventory_{stamp}.csv"'
        count = write_inventory_csv(grouped_inventory(filters), response)

        logger.info("inventory.exported", extra={"rows": count, "user_id": str(request.user.pk)})
        return response


class LowStockView(_InventoryView):
    def get(self, request):
        warehouse = (request.query_params.get("warehouse") or "").strip()
        raw = (request.query_params.get("threshold") or "").strip()
        if raw and not raw.isdigit():
            return Response({"detail": "threshold must be a non-negative integer"}, status=status.HTTP_400_BAD_REQUEST)

        threshold = int(raw) if raw else low_stock_threshold()
        rows = [serialize_row(r) for r in low_stock_rows(warehouse=warehouse, threshold=threshold)]
        return Response({"threshold": threshold, "count": len(rows), "results": rows})


class ProductTrackingView(_InventoryView):
    def get(self, request, barcode=None):
        try:
            product = resolve_product(barcode, include_inactive=True)
        except Product.DoesNotExist as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)

        data = product_tracking(product)
        recent = product.ledger_entries.select_related("performed_by").order_by("-event_time", "-id")[:20]
        data["recent_movements"] = LedgerEntrySerializer(recent, many=True).data
        return Response(data)


class AddStockView(CapabilityViewMixin, APIView):
    default_capability = CAP_INVENTORY_EDIT

    def post(self, request):
        serializer = AddStockSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            warehouse = resolve_warehouse(data["warehouse"])
            product = None
            if (data.get("product") or "").strip():
                product = resolve_product(data["product"])

            batch, entry = add_stock_entry(
                warehouse=warehouse,
                quantity=data["qty"],
                product=product,
                barcode=data.get("barcode"),
                product_name=data.get("product_name"),
                variant=data.get("variant") or "",
                source_type=data["source_type"],
                unit_cost=data.get("unit_cost"),
                user=request.user,
            )
        except (Warehouse.DoesNotExist, Product.DoesNotExist, StockError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except ValidationError as exc:
            return Response({"detail": "; ".join(exc.messages)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(
            {
                "batch": StockBatchSerializer(batch).data,
                "ledger": LedgerEntrySerializer(entry).data,
                "reference": entry.reference,
                "stock": batch.product.stock_at(warehouse),
            },
            status=status.HTTP_201_CREATED,
        )
