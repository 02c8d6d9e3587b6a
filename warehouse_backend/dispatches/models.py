# dispatches/models.py

"""
DISPATCH (OUTBOUND SHIPMENT)

A dispatch ships one or more product lines out of ONE warehouse.
Stock leaves via FIFO deduction, one DISPATCH ledger row per product,
all sharing the reference DISPATCH_<id>_<awb or NO_AWB>.

Deleting a dispatch restores its lines LIFO (DISPATCH_REVERSAL,
DISPATCH_DELETE_<id>) before the row is removed.
"""

from django.conf import settings
from django.db import models

from products.models import Product
from products.services.references import dispatch_reference
from warehouses.models import Warehouse

PAYMENT_MODES = [
    "COD",
    "Prepaid",
    "UPI",
    "Credit Card",
    "Debit Card",
    "Net Banking",
    "Wallet",
]


class Dispatch(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        PROCESSING = "processing", "Processing"
        DISPATCHED = "dispatched", "Dispatched"
        IN_TRANSIT = "in_transit", "In Transit"
        DELIVERED = "delivered", "Delivered"
        CANCELLED = "cancelled", "Cancelled"
        RETURNED = "returned", "Returned"

    warehouse = models.ForeignKey(
        Warehouse, on_delete=models.PROTECT, related_name="dispatches"
    )

    order_ref = models.CharField(max_length=100, blank=True, db_index=True)
    customer = models.CharField(max_length=255, blank=True)
    awb = models.CharField(max_length=100, blank=True, db_index=True)

    logistics = models.CharField(max_length=100, blank=True)
    parcel_type = models.CharField(max_length=50, default="Forward")
    payment_mode = models.CharField(max_length=50, blank=True)
    invoice_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    processed_by = models.CharField(max_length=100, blank=True)
    remarks = models.TextField(blank=True)

    length = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    width = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    height = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    actual_weight = models.DecimalField(max_digits=10, decimal_places=3, null=True, blank=True)

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="dispatches",
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        verbose_name_plural = "dispatches"
        indexes = [
            models.Index(fields=["warehouse", "created_at"], name="dispatch_wh_created_idx"),
        ]

    @property
    def reference(self) -> str:
        return dispatch_reference(self.pk, self.awb)

    @property
    def total_qty(self) -> int:
        return sum(int(item.qty) for item in self.items.all())

    def __str__(self):
        return f"Dispatch #{self.pk} {self.order_ref or ''} ({self.status})"


class DispatchItem(models.Model):
    dispatch = models.ForeignKey(Dispatch, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="dispatch_items")

    # snapshots
    product_name = models.CharField(max_length=255)
    barcode = models.CharField(max_length=128, db_index=True)
    variant = models.CharField(max_length=255, blank=True)

    qty = models.PositiveIntegerField()

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"{self.barcode} x {self.qty}"
