# notifications/models.py

"""
NOTIFICATIONS

Notification          one row per recipient; read_at NULL = unread
NotificationPreference per-user channel x topic switches (JSON)
UserSession           one row per WebSocket connection
"""

import copy

from django.conf import settings
from django.db import models
from django.utils import timezone

DEFAULT_PREFERENCES = {
    "email": {
        "mentions": True,
        "dispatches": True,
        "low_stock": True,
        "order_updates": True,
        "system_alerts": True,
    },
    "push": {
        "mentions": True,
        "dispatches": False,
        "low_stock": True,
        "order_updates": False,
        "system_alerts": True,
    },
    "in_app": {
        "mentions": True,
        "dispatches": True,
        "low_stock": True,
        "order_updates": True,
        "system_alerts": True,
    },
}


def default_preferences() -> dict:
    return copy.deepcopy(DEFAULT_PREFERENCES)


class Notification(models.Model):
    class Priority(models.TextChoices):
        LOW = "low", "Low"
        MEDIUM = "medium", "Medium"
        HIGH = "high", "High"
        URGENT = "urgent", "Urgent"

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="notifications"
    )
    type = models.CharField(max_length=50, default="info", db_index=True)
    title = models.CharField(max_length=255)
    message = models.TextField()
    data = models.JSONField(default=dict, blank=True)
    priority = models.CharField(max_length=10, choices=Priority.choices, default=Priority.MEDIUM)

    read_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["user", "read_at"], name="notif_user_read_idx"),
        ]

    @property
    def is_read(self) -> bool:
        return self.read_at is not None

    @property
    def is_expired(self) -> bool:
        return bool(self.expires_at and self.expires_at < timezone.now())

    def as_event(self) -> dict:
        """Payload pushed over the socket."""
        return {
            "id": self.pk,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "data": self.data or {},
            "priority": self.priority,
            "timestamp": (self.created_at or timezone.now()).isoformat(),
            "read": self.is_read,
        }

    def __str__(self):
        return f"{self.type}: {self.title} -> {self.user_id}"


class NotificationPreference(models.Model):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="notification_preference"
    )
    preferences = models.JSONField(default=default_preferences)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Preferences for {self.user_id}"


class UserSession(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="ws_sessions"
    )
    session_id = models.CharField(max_length=64, unique=True)
    channel_name = models.CharField(max_length=255, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.CharField(max_length=255, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)
    connected_at = models.DateTimeField(auto_now_add=True)
    last_activity = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-connected_at"]

    def __str__(self):
        return f"{self.user_id} {self.session_id} ({'active' if self.is_active else 'closed'})"
