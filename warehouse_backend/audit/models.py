# audit/models.py

"""
AUDIT LOG

Append-only record of who did what to which resource.

GUARANTEES:
- Rows are created once, never edited or deleted through the ORM instance API.
- user is nullable so logs survive user deactivation/removal.
- details is free-form JSON (before/after values, filters, counts).
"""

from __future__ import annotations

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models


class AuditLog(models.Model):
    class Action(models.TextChoices):
        CREATE = "CREATE", "Create"
        UPDATE = "UPDATE", "Update"
        DELETE = "DELETE", "Delete"
        LOGIN = "LOGIN", "Login"
        LOGOUT = "LOGOUT", "Logout"
        ASSIGN_PERMISSION = "ASSIGN_PERMISSION", "Assign Permission"
        REMOVE_PERMISSION = "REMOVE_PERMISSION", "Remove Permission"
        UPDATE_PERMISSIONS = "UPDATE_PERMISSIONS", "Replace Permissions"
        UPDATE_ROLE = "UPDATE_ROLE", "Change Role"

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_logs",
    )
    action = models.CharField(max_length=32, choices=Action.choices, db_index=True)
    resource = models.CharField(max_length=64, db_index=True)
    resource_id = models.CharField(max_length=64, blank=True, db_index=True)
    details = models.JSONField(default=dict, blank=True)

    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.CharField(max_length=512, blank=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["resource", "resource_id"], name="audit_resource_idx"),
            models.Index(fields=["user", "created_at"], name="audit_user_created_idx"),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("AuditLog records are immutable")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("AuditLog records are immutable and cannot be deleted")

    def __str__(self):
        who = getattr(self.user, "email", None) or "system"
        return f"{who} {self.action} {self.resource}#{self.resource_id}"
