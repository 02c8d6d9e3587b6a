# products/models/ledger.py

"""
CANONICAL INVENTORY LEDGER

Append-only log of stock movements. One row per stock mutation per
product+warehouse, written in the SAME transaction as the batch updates.

GUARANTEES:
- Append-only (no updates, no deletes)
- qty > 0; direction carries the sign
- Direction validated against movement_type (SELF_TRANSFER may be either)
- reference links back to the originating event, e.g.
    DISPATCH_12_AWB123, damage#7, recover#8, RETURN_3_NO_AWB,
    SELF_TRANSFER_ORD9_1717171717171, DISPATCH_DELETE_12
- product_name / barcode / location_code are snapshots, so history reads
  correctly even after products or warehouses are renamed
"""

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from warehouses.models import Warehouse

from .product import Product


class LedgerEntry(models.Model):
    class Direction(models.TextChoices):
        IN = "IN", "Stock In"
        OUT = "OUT", "Stock Out"

    class MovementType(models.TextChoices):
        OPENING = "OPENING", "Opening Stock"
        PURCHASE = "PURCHASE", "Purchase"
        BULK_UPLOAD = "BULK_UPLOAD", "Bulk Upload"
        ADJUSTMENT = "ADJUSTMENT", "Manual Adjustment"
        DISPATCH = "DISPATCH", "Dispatch"
        DISPATCH_REVERSAL = "DISPATCH_REVERSAL", "Dispatch Reversal"
        DISPATCH_DAMAGE = "DISPATCH_DAMAGE", "Dispatch Damage"
        DAMAGE = "DAMAGE", "Damage"
        RECOVER = "RECOVER", "Recovery"
        RETURN = "RETURN", "Return"
        SELF_TRANSFER = "SELF_TRANSFER", "Self Transfer"

    MOVEMENT_DIRECTION = {
        MovementType.OPENING: Direction.IN,
        MovementType.PURCHASE: Direction.IN,
        MovementType.BULK_UPLOAD: Direction.IN,
        MovementType.ADJUSTMENT: None,
        MovementType.DISPATCH: Direction.OUT,
        MovementType.DISPATCH_REVERSAL: Direction.IN,
        MovementType.DISPATCH_DAMAGE: Direction.OUT,
        MovementType.DAMAGE: Direction.OUT,
        MovementType.RECOVER: Direction.IN,
        MovementType.RETURN: Direction.IN,
        MovementType.SELF_TRANSFER: None,
    }

    event_time = models.DateTimeField(default=timezone.now, db_index=True)

    movement_type = models.CharField(max_length=32, choices=MovementType.choices)
    direction = models.CharField(max_length=3, choices=Direction.choices)

    product = models.ForeignKey(
        Product, on_delete=models.PROTECT, related_name="ledger_entries"
    )
    barcode = models.CharField(max_length=128, db_index=True)
    product_name = models.CharField(max_length=255)

    warehouse = models.ForeignKey(
        Warehouse, on_delete=models.PROTECT, related_name="ledger_entries"
    )
    location_code = models.CharField(max_length=50, db_index=True)

    qty = models.PositiveIntegerField()
    reference = models.CharField(max_length=255, db_index=True)

    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="ledger_entries",
    )

    class Meta:
        ordering = ["event_time", "id"]
        verbose_name_plural = "ledger entries"
        indexes = [
            models.Index(fields=["barcode", "location_code", "event_time"], name="ledger_timeline_idx"),
            models.Index(fields=["movement_type", "event_time"], name="ledger_type_idx"),
            models.Index(fields=["product", "warehouse", "event_time"], name="ledger_product_wh_idx"),
        ]

    def clean(self):
        if self.qty is None or self.qty <= 0:
            raise ValidationError("qty must be greater than zero")

        expected = self.MOVEMENT_DIRECTION.get(self.movement_type)
        if expected and self.direction != expected:
            raise ValidationError(f"{self.movement_type} requires direction={expected}")

        if not (self.reference or "").strip():
            raise ValidationError("reference is required")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("LedgerEntry records are immutable")

        if self.product_id and not self.barcode:
            self.barcode = self.product.barcode
        if self.product_id and not self.product_name:
            self.product_name = self.product.name
        if self.warehouse_id and not self.location_code:
            self.location_code = self.warehouse.code

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("LedgerEntry records are immutable and cannot be deleted")

    @property
    def signed_qty(self) -> int:
        return int(self.qty) if self.direction == self.Direction.IN else -int(self.qty)

    def __str__(self):
        return f"{self.location_code} | {self.barcode} | {self.movement_type} {self.direction} {self.qty}"
