# warehouses/urls.py

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from warehouses.views import ExecutiveViewSet, LogisticsPartnerViewSet, WarehouseViewSet

router = SimpleRouter()
router.register(r"warehouses", WarehouseViewSet, basename="warehouses")
router.register(r"logistics", LogisticsPartnerViewSet, basename="logistics")
router.register(r"executives", ExecutiveViewSet, basename="executives")

urlpatterns = [
    path("", include(router.urls)),
]
