# transfers/views.py

"""
SELF TRANSFER VIEWSET

/api/self-transfer/                    list (source, destination, date_from, date_to, search) / create
/api/self-transfer/create/             same as POST on the list route
/api/self-transfer/{id}/               detail + every ledger row under the transfer reference
/api/self-transfer/statistics/         totals, routes, top products
/api/self-transfer/warehouse-stock/    ?barcode= -> available qty per active location
"""

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from permissions.roles import CAP_TRANSFERS_CREATE, CAP_TRANSFERS_VIEW, CapabilityViewMixin
from products.models import Product
from products.serializers import LedgerEntrySerializer
from products.services.inventory import InventoryFilterError
from products.services.lookup import resolve_product
from products.services.stock_fifo import InsufficientStockError, StockError
from transfers.models import SelfTransfer
from transfers.serializers import SelfTransferCreateSerializer, SelfTransferSerializer
from transfers.services import (
    create_self_transfer,
    filtered_transfers,
    stock_by_warehouse,
    transfer_ledger_entries,
    transfer_statistics,
)
from warehouses.models import Warehouse
from warehouses.services import resolve_warehouse


class SelfTransferViewSet(
    CapabilityViewMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = SelfTransferSerializer
    default_capability = CAP_TRANSFERS_VIEW
    capability_map = {
        "create": CAP_TRANSFERS_CREATE,
        "create_alias": CAP_TRANSFERS_CREATE,
    }

    def get_queryset(self):
        if self.action == "list":
            return filtered_transfers(self.request.query_params)
        return SelfTransfer.objects.select_related("source", "destination", "created_by").prefetch_related("items")

    def list(self, request, *args, **kwargs):
        try:
            return super().list(request, *args, **kwargs)
        except InventoryFilterError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

    def retrieve(self, request, *args, **kwargs):
        transfer = self.get_object()
        data = SelfTransferSerializer(transfer).data
        data["ledger"] = LedgerEntrySerializer(transfer_ledger_entries(transfer), many=True).data
        return Response(data)

    def create(self, request, *args, **kwargs):
        serializer = SelfTransferCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        source_ref = data.pop("source_ref")
        destination_ref = data.pop("destination_ref")
        items = data.pop("items")
        order_ref = data.pop("order_ref")

        try:
            source = resolve_warehouse(source_ref)
            destination = resolve_warehouse(destination_ref)
            transfer = create_self_transfer(
                source=source,
                destination=destination,
                order_ref=order_ref,
                items=items,
                user=request.user,
                **data,
            )
        except InsufficientStockError as exc:
            return Response(
                {"detail": str(exc), "shortages": exc.shortages},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except (Warehouse.DoesNotExist, StockError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        transfer = self.get_queryset().get(pk=transfer.pk)
        return Response(SelfTransferSerializer(transfer).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["post"], url_path="create")
    def create_alias(self, request):
        return self.create(request)

    @action(detail=False, methods=["get"], url_path="statistics")
    def statistics(self, request):
        try:
            return Response(transfer_statistics(request.query_params))
        except InventoryFilterError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

    @action(detail=False, methods=["get"], url_path="warehouse-stock")
    def warehouse_stock(self, request):
        ref = (request.query_params.get("barcode") or request.query_params.get("product") or "").strip()
        if not ref:
            return Response({"detail": "barcode is required"}, status=status.HTTP_400_BAD_REQUEST)
        try:
            product = resolve_product(ref)
        except Product.DoesNotExist as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        warehouses = Warehouse.objects.filter(is_active=True).order_by("code")
        return Response(
            {
                "barcode": product.barcode,
                "product_name": product.name,
                "results": stock_by_warehouse(product, warehouses),
            }
        )
