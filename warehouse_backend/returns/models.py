# returns/models.py

"""
CUSTOMER RETURNS

condition "good"               -> stock goes back in as a new RETURN batch
                                  (ledger RETURN IN, RETURN_<id>_<awb or NO_AWB>)
condition "damaged"/"defective" -> the return is recorded only; stock and
                                  ledger are untouched (stock_added=False)
"""

from django.conf import settings
from django.db import models

from products.models import Product
from products.services.references import return_reference
from warehouses.models import Warehouse


class Return(models.Model):
    class Condition(models.TextChoices):
        GOOD = "good", "Good"
        DAMAGED = "damaged", "Damaged"
        DEFECTIVE = "defective", "Defective"

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        APPROVED = "approved", "Approved"
        REJECTED = "rejected", "Rejected"
        PROCESSED = "processed", "Processed"

    order_ref = models.CharField(max_length=100, blank=True, db_index=True)
    awb = models.CharField(max_length=100, blank=True, db_index=True)

    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="returns")
    # snapshots
    product_name = models.CharField(max_length=255)
    barcode = models.CharField(max_length=128, db_index=True)

    warehouse = models.ForeignKey(Warehouse, on_delete=models.PROTECT, related_name="returns")
    quantity = models.PositiveIntegerField()

    has_parts = models.BooleanField(default=False)
    return_reason = models.CharField(max_length=255, blank=True)
    condition = models.CharField(max_length=16, choices=Condition.choices, default=Condition.GOOD)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING, db_index=True)
    stock_added = models.BooleanField(default=False)

    processed_by = models.CharField(max_length=100, blank=True)
    notes = models.TextField(blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="returns_created",
    )
    submitted_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-submitted_at", "-id"]
        indexes = [
            models.Index(fields=["warehouse", "submitted_at"], name="return_wh_submitted_idx"),
        ]

    @property
    def reference(self) -> str:
        return return_reference(self.pk, self.awb)

    def __str__(self):
        return f"Return #{self.pk} {self.barcode} x {self.quantity} ({self.condition})"
