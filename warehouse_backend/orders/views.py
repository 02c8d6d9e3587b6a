# orders/views.py

"""
ORDER SHEET ENDPOINTS

POST   /api/orders/                              create
GET    /api/orders/{id}/                         detail (active orders only)
POST   /api/orders/search/                       {"tokens": [...]}; GET ?q= splits on whitespace
GET    /api/orders/suggestions/?query=           typed values, at least 2 characters
PATCH  /api/orders/{id}/remark/                  {"remark"}
POST   /api/orders/update-remark/                {"order_id", "remark"}
DELETE /api/orders/delete/{warehouse}/{id}/      soft delete
"""

from django.shortcuts import get_object_or_404
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from orders.serializers import (
    OrderCreateSerializer,
    OrderRemarkSerializer,
    OrderSearchSerializer,
    OrderSerializer,
)
from orders.services import (
    active_orders,
    create_order,
    delete_order,
    search_suggestions,
    universal_search,
    update_remark,
)
from permissions.roles import (
    CAP_ORDERS_CREATE,
    CAP_ORDERS_DELETE,
    CAP_ORDERS_EDIT,
    CAP_ORDERS_VIEW,
    CapabilityViewMixin,
)
from warehouses.models import Warehouse
from warehouses.services import resolve_warehouse


class OrderViewSet(CapabilityViewMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    serializer_class = OrderSerializer
    default_capability = CAP_ORDERS_VIEW
    capability_map = {
        "create": CAP_ORDERS_CREATE,
        "remark": CAP_ORDERS_EDIT,
        "update_remark": CAP_ORDERS_EDIT,
    }

    def get_queryset(self):
        return active_orders()

    def create(self, request, *args, **kwargs):
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)

        try:
            warehouse = resolve_warehouse(data.pop("warehouse"))
        except Warehouse.DoesNotExist as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        order = create_order(warehouse=warehouse, user=request.user, request=request, **data)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get", "post"], url_path="search")
    def search(self, request):
        if request.method == "POST":
            serializer = OrderSearchSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            tokens = serializer.validated_data["tokens"]
        else:
            tokens = (request.query_params.get("q") or "").split()

        rows = universal_search(tokens)
        return Response({"count": len(rows), "results": OrderSerializer(rows, many=True).data})

    @action(detail=False, methods=["get"], url_path="suggestions")
    def suggestions(self, request):
        term = request.query_params.get("query") or request.query_params.get("q") or ""
        return Response({"results": search_suggestions(term)})

    @action(detail=True, methods=["patch", "put"], url_path="remark")
    def remark(self, request, pk=None):
        order = self.get_object()
        serializer = OrderRemarkSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = update_remark(
            order=order,
            remark=serializer.validated_data["remark"],
            user=request.user,
            request=request,
        )
        return Response(OrderSerializer(order).data)

    @action(detail=False, methods=["post"], url_path="update-remark")
    def update_remark(self, request):
        serializer = OrderRemarkSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order_id = serializer.validated_data.get("order_id")
        if not order_id:
            return Response({"detail": "Order ID is required"}, status=status.HTTP_400_BAD_REQUEST)

        order = get_object_or_404(active_orders(), pk=order_id)
        order = update_remark(
            order=order,
            remark=serializer.validated_data["remark"],
            user=request.user,
            request=request,
        )
        return Response({"detail": "Remark updated successfully", "order": OrderSerializer(order).data})


class OrderDeleteView(CapabilityViewMixin, APIView):
    default_capability = CAP_ORDERS_DELETE

    def delete(self, request, warehouse, pk):
        order = get_object_or_404(active_orders(), pk=pk, warehouse__code__iexact=warehouse)
        delete_order(order=order, user=request.user, request=request)
        return Response({"detail": "Order deleted successfully"})
