# products/views/product.py

"""
PRODUCT VIEWSET

/api/products/products/                         list (search, category, include_inactive) / create
/api/products/products/{id}/                    retrieve / patch / delete (soft)
/api/products/products/barcode/{barcode}/       lookup by barcode
/api/products/products/suggestions/?q=          dropdown suggestions (>= 2 chars, top 10)

Stock totals are annotated from ACTIVE batches across all warehouses, or a
single warehouse when ?warehouse=<code> is supplied.
"""

from django.db.models import Q, Sum
from django.db.models.functions import Coalesce
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from audit.models import AuditLog
from audit.services import record_audit
from permissions.roles import CAP_INVENTORY_EDIT, CAP_INVENTORY_VIEW, CapabilityViewMixin
from products.models import Product, StockBatch
from products.serializers import ProductSerializer
from products.services.lookup import product_suggestions


class ProductViewSet(CapabilityViewMixin, viewsets.ModelViewSet):
    serializer_class = ProductSerializer
    default_capability = CAP_INVENTORY_EDIT
    capability_map = {
        "list": CAP_INVENTORY_VIEW,
        "retrieve": CAP_INVENTORY_VIEW,
        "by_barcode": CAP_INVENTORY_VIEW,
        "suggestions": CAP_INVENTORY_VIEW,
    }
    http_method_names = ["get", "post", "put", "patch", "delete", "head", "options"]

    def get_queryset(self):
        params = self.request.query_params

        stock_filter = Q(stock_batches__status=StockBatch.Status.ACTIVE)
        warehouse = (params.get("warehouse") or "").strip()
        if warehouse:
            stock_filter &= Q(stock_batches__warehouse__code__iexact=warehouse)

        qs = Product.objects.select_related("category").annotate(
            total_stock=Coalesce(Sum("stock_batches__qty_available", filter=stock_filter), 0)
        )

        # Detail routes still reach inactive products so they can be reactivated.
        include_inactive = (params.get("include_inactive") or "").strip().lower()
        if self.action in {"list", "by_barcode"} and include_inactive not in {"1", "true", "yes"}:
            qs = qs.filter(is_active=True)

        search = (params.get("search") or params.get("q") or "").strip()
        if search:
            qs = qs.filter(
                Q(name__icontains=search)
                | Q(barcode__icontains=search)
                | Q(variant__icontains=search)
            )

        category = (params.get("category") or "").strip()
        if category:
            if category.isdigit():
                qs = qs.filter(category_id=int(category))
            else:
                qs = qs.filter(category__name__iexact=category)

        return qs.order_by("name", "variant")

    def perform_create(self, serializer):
        product = serializer.save()
        record_audit(
            user=self.request.user,
            action=AuditLog.Action.CREATE,
            resource="products",
            resource_id=product.pk,
            details={"barcode": product.barcode, "name": product.name},
            request=self.request,
        )

    def perform_update(self, serializer):
        product = serializer.save()
        record_audit(
            user=self.request.user,
            action=AuditLog.Action.UPDATE,
            resource="products",
            resource_id=product.pk,
            details={"fields": sorted(serializer.validated_data.keys())},
            request=self.request,
        )

    def destroy(self, request, *args, **kwargs):
        """Soft delete: batches and ledger rows keep referencing the product."""
        product = self.get_object()
        if product.is_active:
            product.is_active = False
            product.save(update_fields=["is_active", "updated_at"])
            record_audit(
                user=request.user,
                action=AuditLog.Action.DELETE,
                resource="products",
                resource_id=product.pk,
                details={"barcode": product.barcode},
                request=request,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["get"], url_path=r"barcode/(?P<barcode>[^/]+)")
    def by_barcode(self, request, barcode=None):
        product = self.get_queryset().filter(barcode=barcode.strip()).first()
        if product is None:
            return Response({"detail": "Product not found."}, status=status.HTTP_404_NOT_FOUND)
        return Response(self.get_serializer(product).data)

    @extend_schema(
        parameters=[
            OpenApiParameter(name="q", type=str, location=OpenApiParameter.QUERY, required=True),
        ],
        description="Product dropdown suggestions by name, variant or barcode (min 2 chars).",
    )
    @action(detail=False, methods=["get"], url_path="suggestions")
    def suggestions(self, request):
        term = request.query_params.get("q") or request.query_params.get("search") or ""
        return Response({"results": product_suggestions(term)})
