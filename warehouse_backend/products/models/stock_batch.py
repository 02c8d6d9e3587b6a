# products/models/stock_batch.py

"""
STOCK BATCH (ONE INFLOW = ONE LOT)

Represents ONE inflow of stock for one product at one warehouse:
an opening balance, a purchase, a bulk-upload row, a good return, a recovery,
the IN side of a self transfer, or a dispatch reversal remainder.

CANONICAL MODEL:
- qty_initial is immutable after creation
- qty_available is mutated ONLY via products.services.stock_fifo
- 0 <= qty_available <= qty_initial (DB check constraints)
- status is ALWAYS derived: active iff qty_available > 0, else exhausted
- product / warehouse / source are immutable
- FIFO consumes by created_at ascending; LIFO restores by created_at descending
"""

import uuid

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from warehouses.models import Warehouse

from .product import Product


class StockBatch(models.Model):
    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        EXHAUSTED = "exhausted", "Exhausted"

    class SourceType(models.TextChoices):
        OPENING = "OPENING", "Opening Stock"
        PURCHASE = "PURCHASE", "Purchase"
        BULK_UPLOAD = "BULK_UPLOAD", "Bulk Upload"
        ADJUSTMENT = "ADJUSTMENT", "Manual Adjustment"
        RETURN = "RETURN", "Customer Return"
        RECOVER = "RECOVER", "Damage Recovery"
        SELF_TRANSFER = "SELF_TRANSFER", "Self Transfer In"
        DISPATCH_REVERSAL = "DISPATCH_REVERSAL", "Dispatch Reversal"

    # Sources a user may pick on the manual stock-entry form.
    ENTRY_SOURCES = {
        SourceType.OPENING,
        SourceType.PURCHASE,
        SourceType.BULK_UPLOAD,
        SourceType.ADJUSTMENT,
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="stock_batches",
    )
    warehouse = models.ForeignKey(
        Warehouse,
        on_delete=models.PROTECT,
        related_name="stock_batches",
    )

    source_type = models.CharField(max_length=32, choices=SourceType.choices)
    source_ref = models.CharField(
        max_length=255,
        blank=True,
        help_text="Reference of the event that created this lot (ledger reference).",
    )

    qty_initial = models.PositiveIntegerField(help_text="Quantity received into this lot (immutable)")
    qty_available = models.PositiveIntegerField(help_text="Remaining quantity (service-managed only)")

    unit_cost = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    # Derived from qty_available; never edited directly
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.ACTIVE)

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["product", "warehouse", "status", "created_at"], name="batch_fifo_idx"),
            models.Index(fields=["warehouse", "created_at"], name="batch_wh_created_idx"),
            models.Index(fields=["source_type"], name="batch_source_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(qty_initial__gt=0),
                name="chk_batch_qty_initial_gt_zero",
            ),
            models.CheckConstraint(
                condition=Q(qty_available__gte=0),
                name="chk_batch_qty_available_gte_zero",
            ),
            models.CheckConstraint(
                condition=Q(qty_available__lte=F("qty_initial")),
                name="chk_batch_available_lte_initial",
            ),
        ]

    # -------------------------------------------------
    # VALIDATION
    # -------------------------------------------------

    def clean(self):
        if self.qty_initial is None or self.qty_initial <= 0:
            raise ValidationError({"qty_initial": "qty_initial must be greater than zero"})

        if self.qty_available is None or self.qty_available < 0:
            raise ValidationError({"qty_available": "qty_available cannot be negative"})

        if self.qty_available > self.qty_initial:
            raise ValidationError({"qty_available": "qty_available cannot exceed qty_initial"})

        if self.unit_cost is not None and self.unit_cost < 0:
            raise ValidationError({"unit_cost": "unit_cost cannot be negative"})

    # -------------------------------------------------
    # IMMUTABILITY + DERIVED STATE
    # -------------------------------------------------

    def save(self, *args, **kwargs):
        if not self._state.adding:
            original = (
                StockBatch.objects.filter(pk=self.pk)
                .values("qty_initial", "product_id", "warehouse_id", "source_type")
                .first()
            )
            if original is not None:
                if self.qty_initial != original["qty_initial"]:
                    raise ValidationError({"qty_initial": "qty_initial is immutable"})
                if (
                    self.product_id != original["product_id"]
                    or self.warehouse_id != original["warehouse_id"]
                    or self.source_type != original["source_type"]
                ):
                    raise ValidationError("product, warehouse and source_type are immutable")

        # status is ALWAYS derived
        self.status = self.Status.ACTIVE if int(self.qty_available or 0) > 0 else self.Status.EXHAUSTED

        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "qty_available" in update_fields:
            kwargs["update_fields"] = {*update_fields, "status", "updated_at"}

        self.full_clean(validate_unique=False, validate_constraints=False)
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        """
        Audit safety: a lot that has been drawn from is part of ledger history.
        """
        if int(self.qty_available or 0) != int(self.qty_initial or 0):
            raise ValidationError("Cannot delete StockBatch: stock has already moved out of it.")
        return super().delete(*args, **kwargs)

    # -------------------------------------------------
    # READ-ONLY HELPERS
    # -------------------------------------------------

    @property
    def qty_consumed(self) -> int:
        return int(self.qty_initial or 0) - int(self.qty_available or 0)

    @property
    def headroom(self) -> int:
        """How much a LIFO reversal may put back into this lot."""
        return self.qty_consumed

    def __str__(self):
        return f"{self.warehouse_id} | {self.product_id} | {self.source_type} {self.qty_available}/{self.qty_initial}"
