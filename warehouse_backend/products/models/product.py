# products/models/product.py

import uuid

from django.db import models
from django.db.models import Sum

from .category import Category


class Product(models.Model):
    """
    A stockable product (SKU), identified by barcode.

    STOCK MODEL (IMPORTANT):
    - Product itself does NOT store stock
    - Stock lives in StockBatch, per warehouse
    - Stock at a warehouse = sum of qty_available over its ACTIVE batches
    - Products are soft-deleted (is_active=False); ledger rows keep pointing at them
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
    )

    barcode = models.CharField(max_length=128, unique=True)
    name = models.CharField(max_length=255, db_index=True)
    variant = models.CharField(max_length=255, blank=True)
    description = models.TextField(blank=True)

    price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    cost_price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    weight = models.DecimalField(max_digits=10, decimal_places=3, null=True, blank=True)
    dimensions = models.CharField(max_length=100, blank=True)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name", "variant"]
        indexes = [
            models.Index(fields=["name", "variant"], name="product_name_variant_idx"),
        ]

    def save(self, *args, **kwargs):
        self.barcode = (self.barcode or "").strip()
        self.name = (self.name or "").strip()
        self.variant = (self.variant or "").strip()
        super().save(*args, **kwargs)

    @property
    def label(self) -> str:
        """Dropdown label: "Name | Variant | Barcode" (variant omitted when blank)."""
        parts = [self.name]
        if self.variant:
            parts.append(self.variant)
        parts.append(self.barcode)
        return " | ".join(parts)

    def stock_at(self, warehouse) -> int:
        total = (
            self.stock_batches.filter(warehouse=warehouse, status="active")
            .aggregate(total=Sum("qty_available"))
            .get("total")
        )
        return int(total or 0)

    def __str__(self):
        return self.label
