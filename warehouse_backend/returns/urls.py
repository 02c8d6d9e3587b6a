# returns/urls.py

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from returns.views import ReturnViewSet

# Mounted at /api/returns/.
router = SimpleRouter()
router.register(r"", ReturnViewSet, basename="returns")

urlpatterns = [
    path("", include(router.urls)),
]
