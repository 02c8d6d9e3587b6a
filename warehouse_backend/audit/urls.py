# audit/urls.py

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from audit.views import AuditLogViewSet

router = SimpleRouter()
router.register(r"audit-logs", AuditLogViewSet, basename="audit-logs")

urlpatterns = [
    path("", include(router.urls)),
]
