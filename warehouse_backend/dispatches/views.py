# dispatches/views.py

"""
DISPATCH VIEWSET

/api/dispatches/                         list (warehouse, status, date_from, date_to, search) / create
/api/dispatches/{id}/                    retrieve / delete (restores stock LIFO)
/api/dispatches/{id}/status/             PATCH status, processed_by, remarks
/api/dispatches/{id}/damage/             POST damage found on a dispatched line
/api/dispatches/{id}/timeline/           dispatch + damage + ledger events
/api/dispatches/stats/                   per warehouse aggregates
/api/dispatches/check-inventory/         ?warehouse=&barcode=&qty=
/api/dispatches/product-suggestions/     ?q=
/api/dispatches/payment-modes/           static list
"""

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from damages.serializers import DamageRecoveryLogSerializer
from dispatches.models import PAYMENT_MODES, Dispatch
from dispatches.serializers import (
    DispatchCreateSerializer,
    DispatchDamageSerializer,
    DispatchSerializer,
    DispatchStatusSerializer,
)
from dispatches.services import (
    create_dispatch,
    delete_dispatch,
    dispatch_stats,
    dispatch_timeline,
    filtered_dispatches,
    report_dispatch_damage,
    update_dispatch_status,
)
from permissions.roles import (
    CAP_DISPATCH_CREATE,
    CAP_DISPATCH_DELETE,
    CAP_DISPATCH_EDIT,
    CAP_DISPATCH_VIEW,
    CapabilityViewMixin,
)
from products.models import Product
from products.serializers import LedgerEntrySerializer
from products.services.inventory import InventoryFilterError
from products.services.lookup import product_suggestions, resolve_product
from products.services.stock_fifo import (
    InsufficientStockError,
    StockError,
    available_quantity,
    require_positive_qty,
)
from warehouses.models import Warehouse
from warehouses.services import resolve_warehouse


class DispatchViewSet(
    CapabilityViewMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = DispatchSerializer
    default_capability = CAP_DISPATCH_VIEW
    capability_map = {
        "create": CAP_DISPATCH_CREATE,
        "destroy": CAP_DISPATCH_DELETE,
        "set_status": CAP_DISPATCH_EDIT,
        "damage": CAP_DISPATCH_EDIT,
    }

    def get_queryset(self):
        if self.action == "list":
            return filtered_dispatches(self.request.query_params)
        return Dispatch.objects.select_related("warehouse", "created_by").prefetch_related("items")

    def list(self, request, *args, **kwargs):
        try:
            return super().list(request, *args, **kwargs)
        except InventoryFilterError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

    def create(self, request, *args, **kwargs):
        serializer = DispatchCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        items = data.pop("items")
        warehouse_ref = data.pop("warehouse")

        try:
            warehouse = resolve_warehouse(warehouse_ref)
            dispatch = create_dispatch(warehouse=warehouse, items=items, user=request.user, **data)
        except InsufficientStockError as exc:
            return Response(
                {"detail": str(exc), "shortages": exc.shortages},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except (Warehouse.DoesNotExist, StockError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        dispatch = self.get_queryset().get(pk=dispatch.pk)
        return Response(DispatchSerializer(dispatch).data, status=status.HTTP_201_CREATED)

    def destroy(self, request, *args, **kwargs):
        dispatch = self.get_object()
        entries = delete_dispatch(dispatch=dispatch, user=request.user, request=request)
        return Response(
            {
                "detail": f"Dispatch #{kwargs.get('pk')} deleted and stock restored",
                "restored": LedgerEntrySerializer(entries, many=True).data,
            }
        )

    @action(detail=True, methods=["patch"], url_path="status")
    def set_status(self, request, pk=None):
        dispatch = self.get_object()
        serializer = DispatchStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            dispatch = update_dispatch_status(
                dispatch=dispatch,
                status=data["status"],
                processed_by=data.get("processed_by"),
                remarks=data.get("remarks"),
                user=request.user,
                request=request,
            )
        except StockError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(DispatchSerializer(dispatch).data)

    @action(detail=True, methods=["post"], url_path="damage")
    def damage(self, request, pk=None):
        dispatch = self.get_object()
        serializer = DispatchDamageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            product = resolve_product(data["product_ref"], include_inactive=True)
            log, entry = report_dispatch_damage(
                dispatch=dispatch,
                product=product,
                quantity=data["quantity"],
                reason=data["reason"],
                notes=data["notes"],
                user=request.user,
            )
        except (Product.DoesNotExist, StockError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(
            {
                "log": DamageRecoveryLogSerializer(log).data,
                "ledger": LedgerEntrySerializer(entry).data,
            },
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=["get"], url_path="timeline")
    def timeline(self, request, pk=None):
        dispatch = self.get_object()
        return Response(
            {
                "dispatch": DispatchSerializer(dispatch).data,
                "events": dispatch_timeline(dispatch),
            }
        )

    @action(detail=False, methods=["get"], url_path="stats")
    def stats(self, request):
        try:
            return Response(dispatch_stats(request.query_params))
        except InventoryFilterError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

    @action(detail=False, methods=["get"], url_path="check-inventory")
    def check_inventory(self, request):
        params = request.query_params
        barcode = (params.get("barcode") or params.get("product") or "").strip()
        warehouse_ref = (params.get("warehouse") or "").strip()
        if not barcode or not warehouse_ref:
            return Response(
                {"detail": "warehouse and barcode are required"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            product = resolve_product(barcode)
            warehouse = resolve_warehouse(warehouse_ref)
            requested = require_positive_qty(params.get("qty") or 1)
        except (Product.DoesNotExist, Warehouse.DoesNotExist, StockError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        available = available_quantity(product=product, warehouse=warehouse)
        return Response(
            {
                "barcode": product.barcode,
                "product_name": product.name,
                "warehouse": warehouse.code,
                "requested": requested,
                "available": available,
                "ok": available >= requested,
            }
        )

    @action(detail=False, methods=["get"], url_path="product-suggestions")
    def product_suggestions(self, request):
        term = request.query_params.get("q") or request.query_params.get("search") or ""
        return Response({"results": product_suggestions(term)})

    @action(detail=False, methods=["get"], url_path="payment-modes")
    def payment_modes(self, request):
        return Response({"results": PAYMENT_MODES})
