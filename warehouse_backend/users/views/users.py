# users/views/users.py

"""
USER MANAGEMENT (ADMIN)

/api/users/                    list (search, role, is_active) / create
/api/users/{id}/               retrieve / patch / delete (deactivates)
/api/users/{id}/role/          change role

Every write is audit-logged inside the same transaction.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from audit.models import AuditLog
from audit.services import record_audit
from permissions.roles import CAP_SYSTEM_USER_MANAGEMENT, CAP_SYSTEM_ROLE_MANAGEMENT, CapabilityViewMixin
from users.serializers import (
    RoleChangeSerializer,
    UserCreateSerializer,
    UserSerializer,
    UserUpdateSerializer,
)

User = get_user_model()


class UserViewSet(CapabilityViewMixin, viewsets.ModelViewSet):
    default_capability = CAP_SYSTEM_USER_MANAGEMENT
    capability_map = {"change_role": CAP_SYSTEM_ROLE_MANAGEMENT}
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_queryset(self):
        qs = User.objects.select_related("role").order_by("-created_at")
        params = self.request.query_params

        search = (params.get("search") or "").strip()
        if search:
            qs = qs.filter(
                Q(email__icontains=search)
                | Q(username__icontains=search)
                | Q(first_name__icontains=search)
                | Q(last_name__icontains=search)
            )

        role = (params.get("role") or "").strip()
        if role:
            qs = qs.filter(role__name=role)

        is_active = (params.get("is_active") or "").strip().lower()
        if is_active in {"true", "1", "yes"}:
            qs = qs.filter(is_active=True)
        elif is_active in {"false", "0", "no"}:
            qs = qs.filter(is_active=False)

        return qs

    def get_serializer_class(self):
        if self.action == "create":
            return UserCreateSerializer
        if self.action == "partial_update":
            return UserUpdateSerializer
        if self.action == "change_role":
            return RoleChangeSerializer
        return UserSerializer

    @transaction.atomic
    def create(self, request, *args, **kwargs):
        serializer = UserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        record_audit(
            user=request.user,
            action=AuditLog.Action.CREATE,
            resource="users",
            resource_id=user.pk,
            details={"email": user.email, "role": user.role_name},
            request=request,
        )
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)

    @transaction.atomic
    def partial_update(self, request, *args, **kwargs):
        user = self.get_object()
        serializer = UserUpdateSerializer(user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        changed = sorted(k for k in request.data.keys() if k != "password")
        record_audit(
            user=request.user,
            action=AuditLog.Action.UPDATE,
            resource="users",
            resource_id=user.pk,
            details={"fields": changed, "password_changed": "password" in request.data},
            request=request,
        )
        return Response(UserSerializer(user).data)

    @transaction.atomic
    def destroy(self, request, *args, **kwargs):
        user = self.get_object()
        if user.pk == request.user.pk:
            return Response(
                {"detail": "You cannot deactivate your own account."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        user.is_active = False
        user.save(update_fields=["is_active", "updated_at"])
        record_audit(
            user=request.user,
            action=AuditLog.Action.DELETE,
            resource="users",
            resource_id=user.pk,
            details={"email": user.email, "soft_delete": True},
            request=request,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["put", "patch"], url_path="role")
    @transaction.atomic
    def change_role(self, request, pk=None):
        user = self.get_object()
        serializer = RoleChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        old_role = user.role_name
        user.role = serializer.validated_data["role"]
        user.save(update_fields=["role", "updated_at"])
        record_audit(
            user=request.user,
            action=AuditLog.Action.UPDATE_ROLE,
            resource="users",
            resource_id=user.pk,
            details={"from": old_role, "to": user.role_name},
            request=request,
        )
        return Response(UserSerializer(user).data)
