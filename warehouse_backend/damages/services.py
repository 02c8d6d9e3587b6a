# damages/services.py

"""
DAMAGE & RECOVERY SERVICES

- record_damage(): log row + FIFO deduction (DAMAGE, or DISPATCH_DAMAGE when
  linked to a dispatch).
- record_recovery(): log row + new RECOVER batch (IN).

The log row is written first so its id can go into the ledger reference;
any stock failure rolls the log row back with everything else.
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.db.models import Count, Q, Sum

from damages.models import DamageRecoveryLog
from products.models import LedgerEntry, StockBatch
from products.services.inventory import parse_date_param
from products.services.stock_fifo import deduct_stock_fifo, require_positive_qty
from products.services.stock_intake import receive_stock

logger = logging.getLogger(__name__)


def _reporter(user):
    return user if getattr(user, "is_authenticated", False) else None


def _stamp_reference(log) -> None:
    log.reference = log.build_reference()
    log.save(update_fields=["reference"])


@transaction.atomic
def record_damage(*, product, warehouse, quantity, reason="", notes="", dispatch=None, user=None):
    """Returns (log, ledger_entry). Raises InsufficientStockError when stock is short."""
    qty = require_positive_qty(quantity)

    log = DamageRecoveryLog.objects.create(
        product=product,
        product_name=product.name,
        barcode=product.barcode,
        warehouse=warehouse,
        action_type=DamageRecoveryLog.ActionType.DAMAGE,
        quantity=qty,
        dispatch=dispatch,
        reason=(reason or "").strip(),
        notes=(notes or "").strip(),
        reported_by=_reporter(user),
    )
    _stamp_reference(log)

    movement = (
        LedgerEntry.MovementType.DISPATCH_DAMAGE if dispatch is not None else LedgerEntry.MovementType.DAMAGE
    )
    entry = deduct_stock_fifo(
        product=product,
        warehouse=warehouse,
        quantity=qty,
        movement_type=movement,
        reference=log.reference,
        user=user,
    )

    logger.info(
        "damage.recorded",
        extra={"log_id": log.pk, "barcode": product.barcode, "warehouse": warehouse.code, "qty": qty},
    )
    return log, entry


@transaction.atomic
def record_recovery(*, product, warehouse, quantity, reason="", notes="", user=None):
    """Returns (log, batch, ledger_entry)."""
    qty = require_positive_qty(quantity)

    log = DamageRecoveryLog.objects.create(
        product=product,
        product_name=product.name,
        barcode=product.barcode,
        warehouse=warehouse,
        action_type=DamageRecoveryLog.ActionType.RECOVER,
        quantity=qty,
        reason=(reason or "").strip(),
        notes=(notes or "").strip(),
        reported_by=_reporter(user),
    )
    _stamp_reference(log)

    batch, entry = receive_stock(
        product=product,
        warehouse=warehouse,
        quantity=qty,
        source_type=StockBatch.SourceType.RECOVER,
        source_ref=log.reference,
        reference=log.reference,
        movement_type=LedgerEntry.MovementType.RECOVER,
        unit_cost=product.cost_price,
        user=user,
    )

    logger.info(
        "recovery.recorded",
        extra={"log_id": log.pk, "barcode": product.barcode, "warehouse": warehouse.code, "qty": qty},
    )
    return log, batch, entry


# ============================================================
# READS
# ============================================================

def filtered_logs(params):
    """warehouse, action_type (both = no filter), date_from, date_to, search."""
    qs = DamageRecoveryLog.objects.select_related("warehouse", "reported_by", "dispatch")

    warehouse = (params.get("warehouse") or "").strip()
    if warehouse and warehouse.upper() != "ALL":
        qs = qs.filter(warehouse__code__iexact=warehouse)

    action_type = (params.get("action_type") or "").strip().lower()
    if action_type and action_type != "both":
        if action_type not in DamageRecoveryLog.ActionType.values:
            raise ValueError("action_type must be damage, recover or both")
        qs = qs.filter(action_type=action_type)

    date_from = parse_date_param(params.get("date_from"), field="date_from")
    date_to = parse_date_param(params.get("date_to"), field="date_to")
    if date_from:
        qs = qs.filter(created_at__date__gte=date_from)
    if date_to:
        qs = qs.filter(created_at__date__lte=date_to)

    search = (params.get("search") or "").strip()
    if search:
        qs = qs.filter(
            Q(barcode__icontains=search)
            | Q(product_name__icontains=search)
            | Q(reason__icontains=search)
        )

    return qs.order_by("-created_at", "-id")


def damage_summary(params) -> list[dict]:
    rows = (
        filtered_logs(params)
        .values("warehouse__code", "action_type")
        .annotate(count=Count("id"), quantity=Sum("quantity"))
        .order_by("warehouse__code", "action_type")
    )
    return [
        {
            "warehouse": row["warehouse__code"],
            "action_type": row["action_type"],
            "count": row["count"],
            "quantity": int(row["quantity"] or 0),
        }
        for row in rows
    ]
