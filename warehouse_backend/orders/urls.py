# orders/urls.py

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from orders.views import OrderDeleteView, OrderViewSet

# Mounted at /api/orders/.
router = SimpleRouter()
router.register(r"", OrderViewSet, basename="orders")

urlpatterns = [
    path("delete/<str:warehouse>/<int:pk>/", OrderDeleteView.as_view(), name="orders-delete"),
    path("", include(router.urls)),
]
