# warehouses/models.py

"""
WAREHOUSE MASTER DATA

Warehouse
- A stock-holding location (warehouse or retail store).
- code is the short, stable identifier used in ledger rows and references
  (e.g. "GGM_WH"); it is stored upper-case and must be unique.
- Warehouses are soft-deleted (is_active=False) because batches and ledger
  rows PROTECT-reference them.

LogisticsPartner / Executive
- Lookup lists used by dispatch + self-transfer forms (suggestions).
"""

import uuid

from django.db import models


class Warehouse(models.Model):
    class Kind(models.TextChoices):
        WAREHOUSE = "warehouse", "Warehouse"
        STORE = "store", "Store"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    code = models.CharField(max_length=50, unique=True)
    name = models.CharField(max_length=255)
    kind = models.CharField(max_length=16, choices=Kind.choices, default=Kind.WAREHOUSE)

    address = models.TextField(blank=True)
    city = models.CharField(max_length=100, blank=True)
    phone = models.CharField(max_length=50, blank=True)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]

    def save(self, *args, **kwargs):
        self.code = (self.code or "").strip().upper()
        self.name = (self.name or "").strip() or self.code
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.name} ({self.code})"


class LogisticsPartner(models.Model):
    name = models.CharField(max_length=100, unique=True)
    contact = models.CharField(max_length=255, blank=True)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class Executive(models.Model):
    """Person who physically processes dispatches / returns at a warehouse."""

    name = models.CharField(max_length=100, unique=True)
    warehouse = models.ForeignKey(
        Warehouse,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="executives",
    )
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name
