# permissions/views.py

"""
======================================================
PATH: permissions/views.py
======================================================
ROLE / CAPABILITY ADMINISTRATION

/api/roles/                                   list / create
/api/roles/{id}/                              retrieve / patch / delete
/api/roles/{id}/capabilities/                 GET list, POST add, PUT replace
/api/roles/{id}/capabilities/{code}/          DELETE remove
/api/capabilities/                            list (module filter) / retrieve / patch (is_active, description)
/api/system/stats/                            users, roles, capabilities, audit activity
/api/system/capability-usage/                 roles + users per capability (monitoring AND permission management)
/api/system/role-distribution/                users per role

RULES:
- System roles cannot be deleted or renamed.
- Roles that still have users cannot be deleted (reassign first).
- Every role/capability change is audit-logged in the same transaction.
"""

from __future__ import annotations

from datetime import timedelta

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from audit.models import AuditLog
from audit.services import record_audit
from permissions.models import Capability, Role
from permissions.roles import (
    CAP_SYSTEM_MONITORING,
    CAP_SYSTEM_PERMISSION_MANAGEMENT,
    CAP_SYSTEM_ROLE_MANAGEMENT,
    CapabilityViewMixin,
    HasAllCapabilities,
)
from permissions.serializers import (
    CapabilityCodeSerializer,
    CapabilityCodesSerializer,
    CapabilitySerializer,
    RoleSerializer,
)

User = get_user_model()


# =====================================================
# ROLES
# =====================================================
class RoleViewSet(CapabilityViewMixin, viewsets.ModelViewSet):
    serializer_class = RoleSerializer
    default_capability = CAP_SYSTEM_ROLE_MANAGEMENT
    http_method_names = ["get", "post", "put", "patch", "delete", "head", "options"]
    pagination_class = None

    def get_queryset(self):
        qs = Role.objects.prefetch_related("capabilities").annotate(
            user_count=Count("users", distinct=True)
        )
        include_inactive = (self.request.query_params.get("include_inactive") or "").strip().lower()
        if include_inactive not in {"1", "true", "yes"}:
            qs = qs.filter(is_active=True)
        return qs.order_by("name")

    def perform_create(self, serializer):
        role = serializer.save()
        record_audit(
            user=self.request.user,
            action=AuditLog.Action.CREATE,
            resource="roles",
            resource_id=role.pk,
            details={"name": role.name},
            request=self.request,
        )

    def perform_update(self, serializer):
        role = serializer.save()
        record_audit(
            user=self.request.user,
            action=AuditLog.Action.UPDATE,
            resource="roles",
            resource_id=role.pk,
            details={"fields": sorted(serializer.validated_data.keys())},
            request=self.request,
        )

    @transaction.atomic
    def create(self, request, *args, **kwargs):
        return super().create(request, *args, **kwargs)

    @transaction.atomic
    def update(self, request, *args, **kwargs):
        return super().update(request, *args, **kwargs)

    @transaction.atomic
    def destroy(self, request, *args, **kwargs):
        role = self.get_object()
        if role.is_system:
            return Response(
                {"detail": "System roles cannot be deleted."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        if role.users.exists():
            return Response(
                {"detail": "Role is assigned to users; reassign them before deleting."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        role_id, role_name = role.pk, role.name
        role.delete()
        record_audit(
            user=request.user,
            action=AuditLog.Action.DELETE,
            resource="roles",
            resource_id=role_id,
            details={"name": role_name},
            request=request,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)

    # -------------------------------------------------
    # ROLE CAPABILITIES
    # -------------------------------------------------
    def _capabilities_response(self, role):
        caps = role.capabilities.order_by("module", "code")
        return Response(
            {
                "role": role.name,
                "capabilities": CapabilitySerializer(caps, many=True).data,
            }
        )

    @action(detail=True, methods=["get", "post", "put"], url_path="capabilities")
    @transaction.atomic
    def capabilities(self, request, pk=None):
        role = self.get_object()

        if request.method == "GET":
            return self._capabilities_response(role)

        if request.method == "POST":
            serializer = CapabilityCodeSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            cap = serializer.validated_data["capability"]
            role.capabilities.add(cap)
            record_audit(
                user=request.user,
                action=AuditLog.Action.ASSIGN_PERMISSION,
                resource="roles",
                resource_id=role.pk,
                details={"capability": cap.code},
                request=request,
            )
            return self._capabilities_response(role)

        serializer = CapabilityCodesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        caps = serializer.validated_data["capabilities"]
        before = sorted(role.capabilities.values_list("code", flat=True))
        role.capabilities.set(caps)
        record_audit(
            user=request.user,
            action=AuditLog.Action.UPDATE_PERMISSIONS,
            resource="roles",
            resource_id=role.pk,
            details={"before": before, "after": sorted(c.code for c in caps)},
            request=request,
        )
        return self._capabilities_response(role)

    @action(
        detail=True,
        methods=["delete"],
        url_path=r"capabilities/(?P<code>[a-z_]+\.[a-z_]+)",
    )
    @transaction.atomic
    def remove_capability(self, request, pk=None, code=None):
        role = self.get_object()
        cap = role.capabilities.filter(code=code).first()
        if cap is None:
            return Response(
                {"detail": f"Role does not have capability '{code}'."},
                status=status.HTTP_404_NOT_FOUND,
            )

        role.capabilities.remove(cap)
        record_audit(
            user=request.user,
            action=AuditLog.Action.REMOVE_PERMISSION,
            resource="roles",
            resource_id=role.pk,
            details={"capability": code},
            request=request,
        )
        return self._capabilities_response(role)


# =====================================================
# CAPABILITIES
# =====================================================
class CapabilityViewSet(CapabilityViewMixin, viewsets.ModelViewSet):
    serializer_class = CapabilitySerializer
    default_capability = CAP_SYSTEM_PERMISSION_MANAGEMENT
    http_method_names = ["get", "patch", "head", "options"]
    pagination_class = None

    def get_queryset(self):
        qs = Capability.objects.annotate(role_count=Count("roles", distinct=True))
        module = (self.request.query_params.get("module") or "").strip()
        if module:
            qs = qs.filter(module=module)
        return qs.order_by("module", "code")

    def list(self, request, *args, **kwargs):
        data = CapabilitySerializer(self.get_queryset(), many=True).data
        grouped: dict[str, list] = {}
        for row in data:
            grouped.setdefault(row["module"], []).append(row)
        return Response({"count": len(data), "results": data, "by_module": grouped})


# =====================================================
# SYSTEM MONITORING
# =====================================================
class _MonitoringView(CapabilityViewMixin, APIView):
    default_capability = CAP_SYSTEM_MONITORING


class SystemStatsView(_MonitoringView):
    def get(self, request):
        now = timezone.now()
        since = now - timedelta(hours=24)

        users = User.objects.aggregate(
            total=Count("id"),
            active=Count("id", filter=Q(is_active=True)),
            without_role=Count("id", filter=Q(role__isnull=True)),
            logged_in_24h=Count("id", filter=Q(last_login__gte=since)),
        )
        audit = AuditLog.objects.filter(created_at__gte=since)

        return Response(
            {
                "users": users,
                "roles": {
                    "total": Role.objects.count(),
                    "active": Role.objects.filter(is_active=True).count(),
                    "system": Role.objects.filter(is_system=True).count(),
                },
                "capabilities": {
                    "total": Capability.objects.count(),
                    "active": Capability.objects.filter(is_active=True).count(),
                },
                "audit_24h": {
                    "total": audit.count(),
                    "by_action": {
                        row["action"]: row["count"]
                        for row in audit.values("action").annotate(count=Count("id")).order_by()
                    },
                },
                "generated_at": now.isoformat(),
            }
        )


class CapabilityUsageView(APIView):
    permission_classes = [IsAuthenticated, HasAllCapabilities]
    required_all_capabilities = {CAP_SYSTEM_MONITORING, CAP_SYSTEM_PERMISSION_MANAGEMENT}

    def get(self, request):
        rows = (
            Capability.objects.annotate(
                role_count=Count("roles", filter=Q(roles__is_active=True), distinct=True),
                user_count=Count(
                    "roles__users",
                    filter=Q(roles__is_active=True, roles__users__is_active=True),
                    distinct=True,
                ),
            )
            .order_by("module", "code")
            .values("code", "module", "is_active", "role_count", "user_count")
        )
        return Response({"results": list(rows)})


class RoleDistributionView(_MonitoringView):
    def get(self, request):
        rows = (
            Role.objects.annotate(
                user_count=Count("users", filter=Q(users__is_active=True), distinct=True)
            )
            .order_by("-user_count", "name")
            .values("name", "display_name", "is_active", "user_count")
        )
        unassigned = User.objects.filter(is_active=True, role__isnull=True).count()
        return Response({"results": list(rows), "unassigned": unassigned})
