# damages/models.py

"""
DAMAGE / RECOVERY LOG

One row per damage report or recovery. The stock effect lives in the ledger:
- damage            -> LedgerEntry DAMAGE OUT          reference damage#<id>
- dispatch damage   -> LedgerEntry DISPATCH_DAMAGE OUT reference dispatch_damage#<id>
- recover           -> new RECOVER batch + ledger IN   reference recover#<id>

The reference is stored on the row when it is created and never recomputed.
"""

from django.conf import settings
from django.db import models

from products.models import Product
from products.services.references import (
    damage_reference,
    dispatch_damage_reference,
    recover_reference,
)
from warehouses.models import Warehouse


class DamageRecoveryLog(models.Model):
    class ActionType(models.TextChoices):
        DAMAGE = "damage", "Damage"
        RECOVER = "recover", "Recover"

    product = models.ForeignKey(
        Product, on_delete=models.PROTECT, related_name="damage_logs"
    )
    product_name = models.CharField(max_length=255)
    barcode = models.CharField(max_length=128, db_index=True)
    warehouse = models.ForeignKey(
        Warehouse, on_delete=models.PROTECT, related_name="damage_logs"
    )

    action_type = models.CharField(max_length=16, choices=ActionType.choices)
    quantity = models.PositiveIntegerField()

    dispatch = models.ForeignKey(
        "dispatches.Dispatch",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="damage_logs",
    )

    # Written once after insert; survives the dispatch being deleted.
    reference = models.CharField(max_length=100, blank=True, db_index=True)

    reason = models.CharField(max_length=255, blank=True)
    notes = models.TextField(blank=True)

    reported_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="damage_logs",
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["warehouse", "action_type", "created_at"], name="damage_wh_action_idx"),
        ]

    def build_reference(self) -> str:
        if self.action_type == self.ActionType.RECOVER:
            return recover_reference(self.pk)
        if self.dispatch_id:
            return dispatch_damage_reference(self.pk)
        return damage_reference(self.pk)

    def __str__(self):
        return f"{self.action_type} {self.quantity} x {self.barcode} @ {self.warehouse_id}"
