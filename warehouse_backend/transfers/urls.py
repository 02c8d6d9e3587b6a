# transfers/urls.py

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from transfers.views import SelfTransferViewSet

# Mounted at /api/self-transfer/.
router = SimpleRouter()
router.register(r"", SelfTransferViewSet, basename="self-transfer")

urlpatterns = [
    path("", include(router.urls)),
]
