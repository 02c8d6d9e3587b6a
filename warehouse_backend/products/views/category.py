# products/views/category.py

from django.db.models import Count, Q
from rest_framework import mixins, viewsets

from permissions.roles import CAP_INVENTORY_EDIT, CAP_INVENTORY_VIEW, CapabilityViewMixin
from products.models import Category
from products.serializers import CategorySerializer


class CategoryViewSet(
    CapabilityViewMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    """
    Categories: list/read for inventory viewers, create/update for editors.
    No delete; products keep pointing at their category.
    """

    serializer_class = CategorySerializer
    default_capability = CAP_INVENTORY_EDIT
    capability_map = {"list": CAP_INVENTORY_VIEW, "retrieve": CAP_INVENTORY_VIEW}
    pagination_class = None

    def get_queryset(self):
        return Category.objects.annotate(
            product_count=Count("products", filter=Q(products__is_active=True))
        ).order_by("name")
