# audit/views.py

"""
AUDIT LOG API (read-only)

GET /api/audit-logs/                 all logs (filters: user_id, action, resource, date_from, date_to)
GET /api/audit-logs/user/<user_id>/  logs for one user
GET /api/audit-logs/action/<action>/ logs for one action
"""

from __future__ import annotations

from datetime import datetime

from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError

from audit.models import AuditLog
from audit.serializers import AuditLogSerializer
from permissions.roles import CAP_SYSTEM_AUDIT_LOG, CapabilityViewMixin


def _parse_date(raw: str, name: str):
    try:
        return datetime.strptime(raw, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError({name: f"{name} must be YYYY-MM-DD"})


class AuditLogViewSet(CapabilityViewMixin, viewsets.ReadOnlyModelViewSet):
    serializer_class = AuditLogSerializer
    default_capability = CAP_SYSTEM_AUDIT_LOG

    def get_queryset(self):
        qs = AuditLog.objects.select_related("user")
        params = self.request.query_params

        user_id = (params.get("user_id") or "").strip()
        if user_id:
            qs = qs.filter(user_id=user_id)

        action_name = (params.get("action") or "").strip().upper()
        if action_name:
            qs = qs.filter(action=action_name)

        resource = (params.get("resource") or "").strip()
        if resource:
            qs = qs.filter(resource=resource)

        date_from = (params.get("date_from") or "").strip()
        if date_from:
            qs = qs.filter(created_at__date__gte=_parse_date(date_from, "date_from"))

        date_to = (params.get("date_to") or "").strip()
        if date_to:
            qs = qs.filter(created_at__date__lte=_parse_date(date_to, "date_to"))

        return qs

    def _paginated(self, qs):
        page = self.paginate_queryset(qs)
        serializer = self.get_serializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    @action(detail=False, methods=["get"], url_path=r"user/(?P<user_id>[0-9a-fA-F-]+)")
    def by_user(self, request, user_id=None):
        return self._paginated(self.get_queryset().filter(user_id=user_id))

    @action(detail=False, methods=["get"], url_path=r"action/(?P<action_name>[A-Za-z_]+)")
    def by_action(self, request, action_name=None):
        return self._paginated(self.get_queryset().filter(action=action_name.upper()))
