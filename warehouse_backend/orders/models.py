# orders/models.py

"""
ORDER SHEET

Free-form order rows (no stock effect). Deleting an order only clears
is_active; every create/update/delete is audited.
"""

from django.conf import settings
from django.db import models

from warehouses.models import Warehouse


class Order(models.Model):
    customer = models.CharField(max_length=255)
    product_name = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField()

    dimensions = models.CharField(max_length=100, blank=True)
    length = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    width = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    height = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    awb = models.CharField(max_length=100, blank=True, db_index=True)
    order_ref = models.CharField(max_length=100, blank=True, db_index=True)
    warehouse = models.ForeignKey(Warehouse, on_delete=models.PROTECT, related_name="orders")

    status = models.CharField(max_length=50, default="pending", db_index=True)
    payment_mode = models.CharField(max_length=50, blank=True)
    invoice_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    remark = models.TextField(blank=True)

    is_active = models.BooleanField(default=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders_created",
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"Order #{self.pk} {self.customer} ({self.status})"
