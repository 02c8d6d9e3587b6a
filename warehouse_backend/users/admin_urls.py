# users/admin_urls.py

"""
User management routes: /api/users/...
(kept apart from users/urls.py, which is mounted under /api/auth/)
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from users.views import UserViewSet

router = SimpleRouter()
router.register(r"users", UserViewSet, basename="users")

urlpatterns = [
    path("", include(router.urls)),
]
