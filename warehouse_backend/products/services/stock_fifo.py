# products/services/stock_fifo.py

"""
FIFO / LIFO STOCK ENGINE

Purpose:
- Deduct stock FIFO (oldest batch first, by created_at) for every outflow:
  dispatch, damage, dispatch damage, self transfer OUT.
- Restore stock LIFO (newest batch first) when an earlier outflow is reversed
  (dispatch delete).
- Pair EVERY mutation with exactly one LedgerEntry in the same transaction.

HARD RULES:
- Integer-only quantities (qty > 0).
- qty_available never goes negative; a batch reaching 0 becomes "exhausted".
- Batches are locked (select_for_update) before they are read for deduction.
- If anything fails after batch updates (including the ledger insert), the
  surrounding atomic block rolls every batch mutation back.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass

from django.db import transaction
from django.db.models import Sum

from products.models import LedgerEntry, StockBatch

logger = logging.getLogger(__name__)


# ============================================================
# DOMAIN ERRORS
# ============================================================

class StockError(Exception):
    """Base class for stock engine failures (mapped to HTTP 400 by views)."""


class InsufficientStockError(StockError):
    def __init__(self, message, *, shortages=None):
        super().__init__(message)
        self.shortages = shortages or []


class StockRestorationError(StockError):
    pass


def _to_int_qty(value) -> int:
    """
    Quantity normalizer.
    HARD RULE: quantities are integer units in this system.
    """
    if value is None or value == "":
        return 0

    if isinstance(value, bool):
        raise StockError("quantity must be a whole integer unit")

    if isinstance(value, int):
        return value

    if isinstance(value, float) and value.is_integer():
        return int(value)

    if isinstance(value, str):
        s = value.strip()
        if s.isdigit():
            return int(s)

    raise StockError("quantity must be a whole integer unit")


def require_positive_qty(value) -> int:
    qty = _to_int_qty(value)
    if qty <= 0:
        raise StockError("quantity must be greater than zero")
    return qty


# ============================================================
# READS
# ============================================================

def _active_batches(*, product, warehouse):
    return StockBatch.objects.filter(
        product=product,
        warehouse=warehouse,
        status=StockBatch.Status.ACTIVE,
        qty_available__gt=0,
    )


def available_quantity(*, product, warehouse) -> int:
    total = _active_batches(product=product, warehouse=warehouse).aggregate(
        total=Sum("qty_available")
    )["total"]
    return int(total or 0)


@dataclass(frozen=True)
class StockLine:
    product: object
    warehouse: object
    qty: int


@dataclass(frozen=True)
class Shortage:
    barcode: str
    product_name: str
    warehouse: str
    requested: int
    available: int

    def as_dict(self) -> dict:
        return {
            "barcode": self.barcode,
            "product_name": self.product_name,
            "warehouse": self.warehouse,
            "requested": self.requested,
            "available": self.available,
        }


def find_shortages(lines) -> list[Shortage]:
    """
    Check every line BEFORE mutating anything.

    Lines for the same product+warehouse are summed, so two lines of 3 against
    a stock of 5 are reported as a shortage.
    """
    requested = defaultdict(int)
    objects = {}
    for line in lines:
        key = (line.product.pk, line.warehouse.pk)
        requested[key] += require_positive_qty(line.qty)
        objects[key] = (line.product, line.warehouse)

    shortages = []
    for key, qty in requested.items():
        product, warehouse = objects[key]
        available = available_quantity(product=product, warehouse=warehouse)
        if available < qty:
            shortages.append(
                Shortage(
                    barcode=product.barcode,
                    product_name=product.name,
                    warehouse=warehouse.code,
                    requested=qty,
                    available=available,
                )
            )
    return shortages


def ensure_available(lines) -> None:
    shortages = find_shortages(lines)
    if shortages:
        detail = "; ".join(
            f"{s.product_name} ({s.barcode}) at {s.warehouse}: Requested: {s.requested}, Available: {s.available}"
            for s in shortages
        )
        raise InsufficientStockError(
            f"Insufficient stock. {detail}",
            shortages=[s.as_dict() for s in shortages],
        )


# ============================================================
# LEDGER
# ============================================================

def _record_ledger(*, product, warehouse, movement_type, direction, qty, reference, user=None):
    return LedgerEntry.objects.create(
        movement_type=movement_type,
        direction=direction,
        product=product,
        barcode=product.barcode,
        product_name=product.name,
        warehouse=warehouse,
        location_code=warehouse.code,
        qty=qty,
        reference=reference,
        performed_by=user if getattr(user, "is_authenticated", False) else None,
    )


# ============================================================
# FIFO DEDUCTION
# ============================================================

@transaction.atomic
def deduct_stock_fifo(*, product, warehouse, quantity, movement_type, reference, user=None) -> LedgerEntry:
    """
    Consume `quantity` units of product at warehouse, oldest batch first.

    Raises InsufficientStockError (nothing mutated) when the active batches
    cannot cover the request.
    """
    if product is None or warehouse is None:
        raise StockError("product and warehouse are required")

    qty = require_positive_qty(quantity)

    batch_list = list(
        _active_batches(product=product, warehouse=warehouse)
        .select_for_update()
        .order_by("created_at", "id")
    )
    total_available = sum(int(b.qty_available or 0) for b in batch_list)

    if total_available < qty:
        raise InsufficientStockError(
            f"Insufficient stock for {product.name} at {warehouse.code}. "
            f"Requested: {qty}, Available: {total_available}",
            shortages=[
                Shortage(product.barcode, product.name, warehouse.code, qty, total_available).as_dict()
            ],
        )

    remaining = qty
    for batch in batch_list:
        if remaining <= 0:
            break

        available = int(batch.qty_available or 0)
        consumed = available if available <= remaining else remaining

        batch.qty_available = available - consumed
        batch.save(update_fields=["qty_available"])

        remaining -= consumed

    entry = _record_ledger(
        product=product,
        warehouse=warehouse,
        movement_type=movement_type,
        direction=LedgerEntry.Direction.OUT,
        qty=qty,
        reference=reference,
        user=user,
    )

    logger.info(
        "stock.deducted",
        extra={
            "barcode": product.barcode,
            "warehouse": warehouse.code,
            "qty": qty,
            "movement_type": movement_type,
            "reference": reference,
        },
    )
    return entry


# ============================================================
# LIFO RESTORATION (REVERSALS)
# ============================================================

@transaction.atomic
def restore_stock_lifo(
    *,
    product,
    warehouse,
    quantity,
    movement_type,
    reference,
    user=None,
    source_type=StockBatch.SourceType.DISPATCH_REVERSAL,
) -> LedgerEntry:
    """
    Put `quantity` units back, newest batch first.

    Each batch is refilled up to its qty_initial (exhausted batches come back
    to active). Whatever does not fit opens a new batch tagged `source_type`.
    """
    if product is None or warehouse is None:
        raise StockRestorationError("product and warehouse are required")

    qty = _to_int_qty(quantity)
    if qty <= 0:
        raise StockRestorationError("restore quantity must be greater than zero")

    candidates = (
        StockBatch.objects.select_for_update()
        .filter(product=product, warehouse=warehouse)
        .order_by("-created_at", "-id")
    )

    remaining = qty
    for batch in candidates:
        if remaining <= 0:
            break

        room = batch.headroom
        if room <= 0:
            continue

        put_back = room if room <= remaining else remaining
        batch.qty_available = int(batch.qty_available) + put_back
        batch.save(update_fields=["qty_available"])
        remaining -= put_back

    if remaining > 0:
        StockBatch.objects.create(
            product=product,
            warehouse=warehouse,
            source_type=source_type,
            source_ref=reference,
            qty_initial=remaining,
            qty_available=remaining,
            unit_cost=product.cost_price,
        )

    entry = _record_ledger(
        product=product,
        warehouse=warehouse,
        movement_type=movement_type,
        direction=LedgerEntry.Direction.IN,
        qty=qty,
        reference=reference,
        user=user,
    )

    logger.info(
        "stock.restored",
        extra={
            "barcode": product.barcode,
            "warehouse": warehouse.code,
            "qty": qty,
            "new_batch_qty": remaining,
            "reference": reference,
        },
    )
    return entry
