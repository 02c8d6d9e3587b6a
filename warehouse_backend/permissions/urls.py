# permissions/urls.py

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from permissions.views import (
    CapabilityUsageView,
    CapabilityViewSet,
    RoleDistributionView,
    RoleViewSet,
    SystemStatsView,
)

router = SimpleRouter()
router.register(r"roles", RoleViewSet, basename="roles")
router.register(r"capabilities", CapabilityViewSet, basename="capabilities")

urlpatterns = [
    path("", include(router.urls)),
    path("system/stats/", SystemStatsView.as_view(), name="system-stats"),
    path("system/capability-usage/", CapabilityUsageView.as_view(), name="system-capability-usage"),
    path("system/role-distribution/", RoleDistributionView.as_view(), name="system-role-distribution"),
]
