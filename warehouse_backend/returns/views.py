# returns/views.py

"""
RETURNS VIEWSET

/api/returns/                       list (warehouse, condition, status, date_from, date_to, search) / create
/api/returns/{id}/                  detail + ledger rows under the return reference
/api/returns/{id}/status/           PATCH status, notes
/api/returns/bulk/                  POST {"returns": [...]}; each row commits or fails on its own
/api/returns/statistics/            counts by condition, status, warehouse + top returned
/api/returns/product-suggestions/   ?q=
"""

from django.db import transaction
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from permissions.roles import (
    CAP_RETURNS_CREATE,
    CAP_RETURNS_EDIT,
    CAP_RETURNS_VIEW,
    CapabilityViewMixin,
)
from products.models import Product
from products.serializers import LedgerEntrySerializer
from products.services.inventory import InventoryFilterError
from products.services.lookup import product_suggestions, resolve_product
from products.services.stock_fifo import StockError
from returns.models import Return
from returns.serializers import (
    ReturnBulkSerializer,
    ReturnCreateSerializer,
    ReturnSerializer,
    ReturnStatusSerializer,
)
from returns.services import (
    create_return,
    filtered_returns,
    return_ledger_entries,
    return_statistics,
    update_return_status,
)
from warehouses.models import Warehouse
from warehouses.services import resolve_warehouse


def _process_one(data, user):
    product = resolve_product(data["product_ref"])
    warehouse = resolve_warehouse(data["warehouse"])
    return create_return(
        product=product,
        warehouse=warehouse,
        quantity=data["quantity"],
        condition=data["condition"],
        order_ref=data["order_ref"],
        awb=data["awb"],
        has_parts=data["has_parts"],
        return_reason=data["return_reason"],
        processed_by=data["processed_by"],
        user=user,
    )


class ReturnViewSet(
    CapabilityViewMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = ReturnSerializer
    default_capability = CAP_RETURNS_VIEW
    capability_map = {
        "create": CAP_RETURNS_CREATE,
        "bulk": CAP_RETURNS_CREATE,
        "set_status": CAP_RETURNS_EDIT,
    }

    def get_queryset(self):
        if self.action == "list":
            return filtered_returns(self.request.query_params)
        return Return.objects.select_related("warehouse", "created_by")

    def list(self, request, *args, **kwargs):
        try:
            return super().list(request, *args, **kwargs)
        except InventoryFilterError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

    def retrieve(self, request, *args, **kwargs):
        ret = self.get_object()
        data = ReturnSerializer(ret).data
        data["ledger"] = LedgerEntrySerializer(return_ledger_entries(ret), many=True).data
        return Response(data)

    def create(self, request, *args, **kwargs):
        serializer = ReturnCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            ret, entry = _process_one(serializer.validated_data, request.user)
        except (Product.DoesNotExist, Warehouse.DoesNotExist, StockError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        message = "Return processed successfully"
        if not ret.stock_added:
            message += f" ({ret.condition} - no stock added)"
        return Response(
            {
                "detail": message,
                "return": ReturnSerializer(ret).data,
                "ledger": LedgerEntrySerializer(entry).data if entry is not None else None,
            },
            status=status.HTTP_201_CREATED,
        )

    @action(detail=False, methods=["post"], url_path="bulk")
    def bulk(self, request):
        serializer = ReturnBulkSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        results = []
        for index, row in enumerate(serializer.validated_data["returns"]):
            row_serializer = ReturnCreateSerializer(data=row)
            if not row_serializer.is_valid():
                results.append({"index": index, "success": False, "errors": row_serializer.errors})
                continue
            try:
                with transaction.atomic():
                    ret, _entry = _process_one(row_serializer.validated_data, request.user)
            except (Product.DoesNotExist, Warehouse.DoesNotExist, StockError) as exc:
                results.append({"index": index, "success": False, "errors": {"detail": str(exc)}})
                continue
            results.append(
                {
                    "index": index,
                    "success": True,
                    "return_id": ret.pk,
                    "reference": ret.reference,
                    "stock_added": ret.stock_added,
                }
            )

        succeeded = sum(1 for r in results if r["success"])
        return Response(
            {
                "detail": f"{succeeded} of {len(results)} returns processed",
                "results": results,
                "summary": {"total": len(results), "successful": succeeded, "failed": len(results) - succeeded},
            },
            status=status.HTTP_201_CREATED if succeeded else status.HTTP_400_BAD_REQUEST,
        )

    @action(detail=True, methods=["patch", "put"], url_path="status")
    def set_status(self, request, pk=None):
        ret = self.get_object()
        serializer = ReturnStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        ret = update_return_status(
            ret=ret,
            status=data["status"],
            notes=data.get("notes"),
            user=request.user,
            request=request,
        )
        return Response(ReturnSerializer(ret).data)

    @action(detail=False, methods=["get"], url_path="statistics")
    def statistics(self, request):
        try:
            return Response(return_statistics(request.query_params))
        except InventoryFilterError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

    @action(detail=False, methods=["get"], url_path="product-suggestions")
    def product_suggestions(self, request):
        term = request.query_params.get("q") or request.query_params.get("search") or ""
        return Response({"results": product_suggestions(term)})
