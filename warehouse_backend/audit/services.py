# audit/services.py

"""
AUDIT SERVICE

record_audit() is called INSIDE the caller's transaction, so an audited
change and its audit row commit or roll back together.
"""

from __future__ import annotations

import logging

from audit.models import AuditLog

logger = logging.getLogger(__name__)


def client_ip(request) -> str | None:
    if request is None:
        return None
    forwarded = (request.META.get("HTTP_X_FORWARDED_FOR") or "").strip()
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.META.get("REMOTE_ADDR") or None


def _json_safe(value):
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_json_safe(v) for v in value]
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


def record_audit(
    *,
    user,
    action: str,
    resource: str,
    resource_id="",
    details: dict | None = None,
    request=None,
) -> AuditLog:
    actor = user if getattr(user, "is_authenticated", False) else None
    user_agent = ""
    if request is not None:
        user_agent = (request.META.get("HTTP_USER_AGENT") or "")[:512]

    entry = AuditLog.objects.create(
        user=actor,
        action=action,
        resource=resource,
        resource_id=str(resource_id or ""),
        details=_json_safe(details or {}),
        ip_address=client_ip(request),
        user_agent=user_agent,
    )
    logger.info(
        "audit.recorded",
        extra={
            "action": action,
            "resource": resource,
            "resource_id": entry.resource_id,
            "user_id": str(actor.pk) if actor else None,
        },
    )
    return entry
