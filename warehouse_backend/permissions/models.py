# permissions/models.py

"""
ROLE TABLE PERMISSIONS

Roles and capabilities live in the database so admins can reshape access
without a deploy.

GUARANTEES:
- Capability.code is the permission language views check against
  (e.g. "inventory.view", "dispatch.create").
- Role.name is a stable slug (super_admin, admin, manager, ...).
- System roles (seeded) cannot be deleted.
- Inactive capabilities are ignored when resolving a user's effective set.
"""

from __future__ import annotations

from django.db import models


class Capability(models.Model):
    code = models.CharField(max_length=64, unique=True)
    module = models.CharField(max_length=32, db_index=True)
    description = models.CharField(max_length=255, blank=True)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["module", "code"]
        verbose_name_plural = "capabilities"

    def save(self, *args, **kwargs):
        self.code = (self.code or "").strip().lower()
        if not self.module and "." in self.code:
            self.module = self.code.split(".", 1)[0]
        super().save(*args, **kwargs)

    def __str__(self):
        return self.code


class Role(models.Model):
    name = models.SlugField(max_length=50, unique=True)
    display_name = models.CharField(max_length=100)
    description = models.TextField(blank=True)

    # Seeded roles: renaming/deleting them would orphan the default map.
    is_system = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    capabilities = models.ManyToManyField(
        Capability,
        blank=True,
        related_name="roles",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def capability_codes(self) -> set[str]:
        return set(
            self.capabilities.filter(is_active=True).values_list("code", flat=True)
        )

    def __str__(self):
        return self.display_name or self.name
