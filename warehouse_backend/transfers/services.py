# transfers/services.py

"""
======================================================
PATH: transfers/services.py
======================================================
SELF TRANSFER SERVICES

create_self_transfer()
- source != destination, order_ref and at least one item are required.
- Availability at the source is checked for ALL items before any write.
- Per product: FIFO deduction at the source (SELF_TRANSFER OUT), then a new
  SELF_TRANSFER batch at the destination (SELF_TRANSFER IN). Every ledger
  row of the transfer carries the same reference.
"""

from __future__ import annotations

import logging
from collections import OrderedDict

from django.db import IntegrityError, transaction
from django.db.models import Count, Q, Sum

from dispatches.services import resolve_lines
from products.models import LedgerEntry, StockBatch
from products.services.inventory import parse_date_param
from products.services.references import epoch_millis, self_transfer_reference
from products.services.stock_fifo import (
    StockError,
    StockLine,
    available_quantity,
    deduct_stock_fifo,
    ensure_available,
)
from products.services.stock_intake import receive_stock
from transfers.models import SelfTransfer, SelfTransferItem

logger = logging.getLogger(__name__)


class TransferError(StockError):
    pass


def transfer_type_for(source, destination) -> str:
    def letter(warehouse):
        return "S" if warehouse.kind == warehouse.Kind.STORE else "W"

    return f"{letter(source)} to {letter(destination)}"


def free_transfer_reference(order_ref) -> str:
    """SELF_TRANSFER_<order_ref>_<ms>, moving to the next millisecond while taken."""
    millis = epoch_millis()
    reference = self_transfer_reference(order_ref, millis)
    while SelfTransfer.objects.filter(reference=reference).exists():
        millis += 1
        reference = self_transfer_reference(order_ref, millis)
    return reference


@transaction.atomic
def create_self_transfer(*, source, destination, order_ref, items, user=None, **fields) -> SelfTransfer:
    if source.pk == destination.pk:
        raise TransferError("Source and destination cannot be the same")
    order_ref = (order_ref or "").strip()
    if not order_ref:
        raise TransferError("Order reference is required")

    lines = resolve_lines(items)
    ensure_available([StockLine(line.product, source, line.qty) for line in lines])

    try:
        with transaction.atomic():
            transfer = SelfTransfer.objects.create(
                reference=free_transfer_reference(order_ref),
                transfer_type=transfer_type_for(source, destination),
                order_ref=order_ref,
                source=source,
                destination=destination,
                created_by=user if getattr(user, "is_authenticated", False) else None,
                **fields,
            )
    except IntegrityError as exc:
        # a concurrent transfer took the same reference between check and insert
        raise TransferError("Transfer reference already in use, please retry") from exc

    totals: OrderedDict = OrderedDict()
    for line in lines:
        product, qty = totals.get(line.product.pk, (line.product, 0))
        totals[line.product.pk] = (product, qty + line.qty)

    SelfTransferItem.objects.bulk_create(
        [
            SelfTransferItem(
                transfer=transfer,
                product=product,
                product_name=product.name,
                barcode=product.barcode,
                qty=qty,
            )
            for product, qty in totals.values()
        ]
    )

    for product, qty in totals.values():
        deduct_stock_fifo(
            product=product,
            warehouse=source,
            quantity=qty,
            movement_type=LedgerEntry.MovementType.SELF_TRANSFER,
            reference=transfer.reference,
            user=user,
        )
        receive_stock(
            product=product,
            warehouse=destination,
            quantity=qty,
            source_type=StockBatch.SourceType.SELF_TRANSFER,
            source_ref=transfer.reference,
            reference=transfer.reference,
            movement_type=LedgerEntry.MovementType.SELF_TRANSFER,
            unit_cost=product.cost_price,
            user=user,
        )

    logger.info(
        "self_transfer.created",
        extra={
            "reference": transfer.reference,
            "source": source.code,
            "destination": destination.code,
            "products": len(totals),
        },
    )
    return transfer


# ============================================================
# READS
# ============================================================

def _matching(params):
    """source, destination, date_from, date_to, search (reference, order_ref, awb, barcode, name)."""
    qs = SelfTransfer.objects.all()

    source = (params.get("source") or "").strip()
    if source and source.upper() != "ALL":
        qs = qs.filter(source__code__iexact=source)

    destination = (params.get("destination") or "").strip()
    if destination and destination.upper() != "ALL":
        qs = qs.filter(destination__code__iexact=destination)

    date_from = parse_date_param(params.get("date_from"), field="date_from")
    date_to = parse_date_param(params.get("date_to"), field="date_to")
    if date_from:
        qs = qs.filter(created_at__date__gte=date_from)
    if date_to:
        qs = qs.filter(created_at__date__lte=date_to)

    search = (params.get("search") or "").strip()
    if search:
        qs = qs.filter(
            Q(reference__icontains=search)
            | Q(order_ref__icontains=search)
            | Q(awb__icontains=search)
            | Q(items__barcode__icontains=search)
            | Q(items__product_name__icontains=search)
        ).distinct()

    return qs


def filtered_transfers(params):
    return (
        _matching(params)
        .select_related("source", "destination", "created_by")
        .prefetch_related("items")
        .order_by("-created_at", "-id")
    )


def transfer_ledger_entries(transfer):
    return list(
        LedgerEntry.objects.filter(reference=transfer.reference)
        .select_related("performed_by")
        .order_by("event_time", "id")
    )


def transfer_statistics(params) -> dict:
    transfers = _matching(params)
    items = SelfTransferItem.objects.filter(transfer__in=transfers.values("pk"))

    totals = items.aggregate(quantity=Sum("qty"))
    routes = (
        transfers.values("source__code", "destination__code")
        .annotate(count=Count("id", distinct=True))
        .order_by("-count", "source__code", "destination__code")
    )
    top = (
        items.values("barcode", "product_name")
        .annotate(quantity=Sum("qty"), transfers=Count("transfer", distinct=True))
        .order_by("-quantity", "barcode")[:10]
    )

    return {
        "totals": {
            "count": transfers.count(),
            "quantity": int(totals["quantity"] or 0),
        },
        "routes": [
            {"source": r["source__code"], "destination": r["destination__code"], "count": r["count"]}
            for r in routes
        ],
        "top_products": [
            {
                "barcode": r["barcode"],
                "product_name": r["product_name"],
                "quantity": int(r["quantity"] or 0),
                "transfers": r["transfers"],
            }
            for r in top
        ],
    }


def stock_by_warehouse(product, warehouses) -> list[dict]:
    return [
        {
            "warehouse": wh.code,
            "warehouse_name": wh.name,
            "available": available_quantity(product=product, warehouse=wh),
        }
        for wh in warehouses
    ]
