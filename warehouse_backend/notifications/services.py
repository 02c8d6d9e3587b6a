# notifications/services.py

"""
======================================================
PATH: notifications/services.py
======================================================
NOTIFICATION DELIVERY

notify_user()
- Persist a Notification row (best effort: a DB failure is logged, the push
  still goes out with id=None).
- Push a "notification" event to the channel group user_<id> AFTER the
  surrounding transaction commits, so rolled-back work never notifies.

broadcast_to_role()
- Every active user holding the role gets their own row + push.

Groups:
- user_<uuid>  one per user (all of that user's sockets)
- role_<name>  one per role (typing relays, role-wide events)
"""

from __future__ import annotations

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction
from django.utils import timezone

from notifications.models import Notification

logger = logging.getLogger(__name__)


def user_group(user_id) -> str:
    return f"user_{user_id}"


def role_group(role_name) -> str:
    return f"role_{role_name}"


def _send(group: str, payload: dict) -> None:
    layer = get_channel_layer()
    if layer is None:
        return
    try:
        async_to_sync(layer.group_send)(group, {"type": "notification.message", "payload": payload})
    except Exception:
        # Delivery is best effort; the row is already stored.
        logger.exception("notifications.push_failed", extra={"group": group})


def push_to_group(group: str, payload: dict) -> None:
    """Send after commit (immediately when no transaction is open)."""
    transaction.on_commit(lambda: _send(group, payload))


def notify_user(user, *, type="info", title, message, data=None, priority=Notification.Priority.MEDIUM, expires_at=None):
    """
    Returns the Notification row, or None when it could not be stored.
    """
    if priority not in Notification.Priority.values:
        priority = Notification.Priority.MEDIUM

    row = None
    try:
        with transaction.atomic():
            row = Notification.objects.create(
                user=user,
                type=type or "info",
                title=title,
                message=message,
                data=data or {},
                priority=priority,
                expires_at=expires_at,
            )
    except DatabaseError:
        logger.exception("notifications.persist_failed", extra={"user_id": str(user.pk), "type": type})

    if row is not None:
        payload = row.as_event()
    else:
        payload = {
            "id": None,
            "type": type or "info",
            "title": title,
            "message": message,
            "data": data or {},
            "priority": priority,
            "timestamp": timezone.now().isoformat(),
            "read": False,
        }

    push_to_group(user_group(user.pk), payload)
    return row


def notify_users(users, **kwargs) -> list[dict]:
    results = []
    for user in users:
        row = notify_user(user, **kwargs)
        results.append(
            {
                "user_id": str(user.pk),
                "success": row is not None,
                "notification_id": row.pk if row is not None else None,
            }
        )
    return results


def users_with_role(role_name):
    User = get_user_model()
    return User.objects.filter(is_active=True, role__name=role_name, role__is_active=True)


def broadcast_to_role(role_name, **kwargs) -> list[dict]:
    return notify_users(users_with_role(role_name), **kwargs)


def unread_for(user, *, limit=10):
    return list(Notification.objects.filter(user=user, read_at__isnull=True).order_by("-created_at", "-id")[:limit])


def mark_read(*, user, notification_id) -> bool:
    now = timezone.now()
    updated = Notification.objects.filter(pk=notification_id, user=user).update(read_at=now)
    if updated:
        Notification.objects.filter(pk=notification_id, delivered_at__isnull=True).update(delivered_at=now)
    return bool(updated)


def mark_all_read(*, user) -> int:
    now = timezone.now()
    qs = Notification.objects.filter(user=user, read_at__isnull=True)
    qs.filter(delivered_at__isnull=True).update(delivered_at=now)
    return qs.update(read_at=now)
