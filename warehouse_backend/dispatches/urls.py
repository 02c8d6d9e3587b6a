# dispatches/urls.py

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from dispatches.views import DispatchViewSet

# Mounted at /api/dispatches/ so the viewset sits on the empty prefix.
router = SimpleRouter()
router.register(r"", DispatchViewSet, basename="dispatches")

urlpatterns = [
    path("", include(router.urls)),
]
