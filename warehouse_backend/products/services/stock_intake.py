# products/services/stock_intake.py

"""
STOCK INTAKE (APPLICATION SERVICE)

Purpose:
- Every inflow opens its OWN StockBatch (one lot per event).
- Produce the matching LedgerEntry(IN) in the same transaction.
- Manual stock entry (`add_stock_entry`) builds the reference
  <SOURCE>_<barcode>_<epoch ms> and may create the product on the fly.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.db import transaction

from products.models import LedgerEntry, Product, StockBatch
from products.services.references import stock_entry_reference
from products.services.stock_fifo import StockError, _record_ledger, require_positive_qty

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")


def _money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    try:
        value = Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError) as exc:
        raise StockError("unit_cost must be a valid decimal") from exc
    if value < 0:
        raise StockError("unit_cost cannot be negative")
    return value


@transaction.atomic
def receive_stock(
    *,
    product,
    warehouse,
    quantity,
    source_type,
    source_ref,
    reference,
    movement_type=None,
    unit_cost=0,
    user=None,
):
    """
    Open a new active batch and write one IN ledger row.

    movement_type defaults to the source type (OPENING -> OPENING, ...).
    Returns (batch, ledger_entry).
    """
    if product is None or warehouse is None:
        raise StockError("product and warehouse are required")

    qty = require_positive_qty(quantity)

    if source_type not in StockBatch.SourceType.values:
        raise StockError(f"Unknown source type: {source_type}")

    movement_type = movement_type or source_type
    if movement_type not in LedgerEntry.MovementType.values:
        raise StockError(f"Unknown movement type: {movement_type}")

    batch = StockBatch.objects.create(
        product=product,
        warehouse=warehouse,
        source_type=source_type,
        source_ref=source_ref or reference,
        qty_initial=qty,
        qty_available=qty,
        unit_cost=_money(unit_cost),
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
        "stock.received",
        extra={
            "barcode": product.barcode,
            "warehouse": warehouse.code,
            "qty": qty,
            "source_type": source_type,
            "reference": reference,
        },
    )
    return batch, entry


@transaction.atomic
def add_stock_entry(
    *,
    warehouse,
    quantity,
    product=None,
    barcode=None,
    product_name=None,
    variant="",
    source_type=StockBatch.SourceType.OPENING,
    unit_cost=None,
    user=None,
):
    """
    Manual / bulk stock entry.

    - Known barcode -> stock is added to that product.
    - Unknown barcode + product_name -> the product is created first.
    - unit_cost falls back to the product's cost_price.
    """
    if source_type not in StockBatch.ENTRY_SOURCES:
        raise StockError(
            f"source_type must be one of: {', '.join(sorted(StockBatch.ENTRY_SOURCES))}"
        )

    if product is None:
        code = (barcode or "").strip()
        if not code:
            raise StockError("barcode is required")

        product = Product.objects.filter(barcode=code).first()
        if product is None:
            name = (product_name or "").strip()
            if not name:
                raise StockError(f"Unknown barcode {code}; product_name is required to create it")
            product = Product.objects.create(
                barcode=code,
                name=name,
                variant=(variant or "").strip(),
                cost_price=_money(unit_cost),
            )
            logger.info("product.created_from_stock_entry", extra={"barcode": code})
        elif not product.is_active:
            raise StockError(f"Product {code} is inactive")

    cost = product.cost_price if unit_cost in (None, "") else unit_cost
    reference = stock_entry_reference(source_type, product.barcode)

    return receive_stock(
        product=product,
        warehouse=warehouse,
        quantity=quantity,
        source_type=source_type,
        source_ref=reference,
        reference=reference,
        unit_cost=cost,
        user=user,
    )
