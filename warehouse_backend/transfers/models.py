# transfers/models.py

"""
SELF TRANSFER (WAREHOUSE -> WAREHOUSE / STORE)

Every item leaves the source FIFO (SELF_TRANSFER OUT) and lands at the
destination as a new SELF_TRANSFER batch (SELF_TRANSFER IN). All ledger
rows of one transfer share SELF_TRANSFER_<order_ref>_<epoch ms>.
"""

from django.conf import settings
from django.db import models

from products.models import Product
from warehouses.models import Warehouse


class SelfTransfer(models.Model):
    class TransferType(models.TextChoices):
        W_TO_W = "W to W", "Warehouse to Warehouse"
        W_TO_S = "W to S", "Warehouse to Store"
        S_TO_W = "S to W", "Store to Warehouse"
        S_TO_S = "S to S", "Store to Store"

    reference = models.CharField(max_length=255, unique=True)
    transfer_type = models.CharField(max_length=10, choices=TransferType.choices, default=TransferType.W_TO_W)

    order_ref = models.CharField(max_length=100, db_index=True)
    awb = models.CharField(max_length=100, blank=True)

    source = models.ForeignKey(Warehouse, on_delete=models.PROTECT, related_name="transfers_out")
    destination = models.ForeignKey(Warehouse, on_delete=models.PROTECT, related_name="transfers_in")

    logistics = models.CharField(max_length=100, blank=True)
    payment_mode = models.CharField(max_length=50, blank=True)
    executive = models.CharField(max_length=100, blank=True)
    invoice_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    weight = models.DecimalField(max_digits=10, decimal_places=3, null=True, blank=True)
    dimensions = models.CharField(max_length=100, blank=True)
    remarks = models.TextField(blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="self_transfers",
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.CheckConstraint(
                condition=~models.Q(source=models.F("destination")),
                name="chk_transfer_distinct_locations",
            ),
        ]

    @property
    def total_qty(self) -> int:
        return sum(int(item.qty) for item in self.items.all())

    def __str__(self):
        return f"{self.reference} ({self.source_id} -> {self.destination_id})"


class SelfTransferItem(models.Model):
    transfer = models.ForeignKey(SelfTransfer, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="transfer_items")

    # snapshots
    product_name = models.CharField(max_length=255)
    barcode = models.CharField(max_length=128, db_index=True)

    qty = models.PositiveIntegerField()

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"{self.barcode} x {self.qty}"
