# dispatches/services.py

"""
======================================================
PATH: dispatches/services.py
======================================================
DISPATCH SERVICES

create_dispatch()
- Resolve every line, then check availability for ALL lines before any write.
- One transaction: dispatch row + item rows + FIFO deduction per product
  (one DISPATCH ledger row per product, reference DISPATCH_<id>_<awb>).
- dispatch_created notification is sent after commit (best effort).

delete_dispatch()
- LIFO-restore every product (DISPATCH_REVERSAL, DISPATCH_DELETE_<id>),
  then delete the dispatch. Damage logs keep their row (dispatch set NULL).

report_dispatch_damage()
- Damage log linked to the dispatch + FIFO deduction (DISPATCH_DAMAGE).
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal

from django.db import transaction
from django.db.models import Count, Q, Sum

from audit.models import AuditLog
from audit.services import record_audit
from damages.services import record_damage
from dispatches.models import Dispatch, DispatchItem
from notifications.services import broadcast_to_role, notify_user
from permissions.roles import ROLE_ADMIN, ROLE_MANAGER
from products.models import LedgerEntry, Product
from products.services.inventory import parse_date_param
from products.services.lookup import resolve_product
from products.services.references import dispatch_delete_reference
from products.services.stock_fifo import (
    StockError,
    StockLine,
    deduct_stock_fifo,
    ensure_available,
    require_positive_qty,
    restore_stock_lifo,
)

logger = logging.getLogger(__name__)


class DispatchError(StockError):
    pass


@dataclass(frozen=True)
class DispatchLine:
    product: Product
    qty: int


def resolve_lines(items) -> list[DispatchLine]:
    """
    items: [{"barcode"|"product_id"|"product": ..., "qty": n}, ...]
    """
    if not items:
        raise DispatchError("At least one product line is required")

    lines = []
    for index, item in enumerate(items, start=1):
        ref = item.get("product_id") or item.get("barcode") or item.get("product")
        try:
            product = resolve_product(ref)
        except Product.DoesNotExist as exc:
            raise DispatchError(f"Line {index}: {exc}") from exc
        try:
            qty = require_positive_qty(item.get("qty"))
        except StockError as exc:
            raise DispatchError(f"Line {index}: {exc}") from exc
        lines.append(DispatchLine(product=product, qty=qty))
    return lines


def _per_product(lines) -> "OrderedDict[object, tuple[Product, int]]":
    totals: OrderedDict = OrderedDict()
    for line in lines:
        product, qty = totals.get(line.product.pk, (line.product, 0))
        totals[line.product.pk] = (product, qty + line.qty)
    return totals


def _dispatch_notice(dispatch: Dispatch) -> dict:
    return {
        "dispatch_id": dispatch.pk,
        "order_ref": dispatch.order_ref,
        "awb": dispatch.awb,
        "warehouse": dispatch.warehouse.code,
        "status": dispatch.status,
    }


# ============================================================
# CREATE
# ============================================================

@transaction.atomic
def create_dispatch(*, warehouse, items, user=None, **fields) -> Dispatch:
    lines = resolve_lines(items)
    ensure_available([StockLine(line.product, warehouse, line.qty) for line in lines])

    dispatch = Dispatch.objects.create(
        warehouse=warehouse,
        created_by=user if getattr(user, "is_authenticated", False) else None,
        **fields,
    )

    DispatchItem.objects.bulk_create(
        [
            DispatchItem(
                dispatch=dispatch,
                product=line.product,
                product_name=line.product.name,
                barcode=line.product.barcode,
                variant=line.product.variant,
                qty=line.qty,
            )
            for line in lines
        ]
    )

    for product, qty in _per_product(lines).values():
        deduct_stock_fifo(
            product=product,
            warehouse=warehouse,
            quantity=qty,
            movement_type=LedgerEntry.MovementType.DISPATCH,
            reference=dispatch.reference,
            user=user,
        )

    total = sum(line.qty for line in lines)
    logger.info(
        "dispatch.created",
        extra={"dispatch_id": dispatch.pk, "warehouse": warehouse.code, "qty": total, "lines": len(lines)},
    )

    notice = {
        "type": "dispatch_created",
        "title": "New dispatch",
        "message": f"Dispatch #{dispatch.pk} ({total} units) created at {warehouse.code}",
        "data": _dispatch_notice(dispatch),
    }
    broadcast_to_role(ROLE_ADMIN, **notice)
    broadcast_to_role(ROLE_MANAGER, **notice)
    return dispatch


# ============================================================
# STATUS / DELETE / DAMAGE
# ============================================================

@transaction.atomic
def update_dispatch_status(*, dispatch, status, processed_by=None, remarks=None, user=None, request=None) -> Dispatch:
    if status not in Dispatch.Status.values:
        raise DispatchError(f"status must be one of: {', '.join(Dispatch.Status.values)}")

    before = dispatch.status
    dispatch.status = status
    update_fields = ["status", "updated_at"]
    if processed_by is not None:
        dispatch.processed_by = processed_by
        update_fields.append("processed_by")
    if remarks is not None:
        dispatch.remarks = remarks
        update_fields.append("remarks")
    dispatch.save(update_fields=update_fields)

    record_audit(
        user=user,
        action=AuditLog.Action.UPDATE,
        resource="dispatches",
        resource_id=dispatch.pk,
        details={"status": {"before": before, "after": status}},
        request=request,
    )

    if dispatch.created_by_id and dispatch.created_by_id != getattr(user, "pk", None):
        notify_user(
            dispatch.created_by,
            type="dispatch_status",
            title="Dispatch updated",
            message=f"Dispatch #{dispatch.pk} is now {dispatch.get_status_display()}",
            data=_dispatch_notice(dispatch),
        )
    return dispatch


@transaction.atomic
def delete_dispatch(*, dispatch, user=None, request=None) -> list[LedgerEntry]:
    dispatch = Dispatch.objects.select_for_update().select_related("warehouse").get(pk=dispatch.pk)
    reference = dispatch_delete_reference(dispatch.pk)
    items = list(dispatch.items.select_related("product"))

    entries = []
    for product, qty in _per_product(DispatchLine(i.product, i.qty) for i in items).values():
        entries.append(
            restore_stock_lifo(
                product=product,
                warehouse=dispatch.warehouse,
                quantity=qty,
                movement_type=LedgerEntry.MovementType.DISPATCH_REVERSAL,
                reference=reference,
                user=user,
            )
        )

    dispatch_id = dispatch.pk
    record_audit(
        user=user,
        action=AuditLog.Action.DELETE,
        resource="dispatches",
        resource_id=dispatch_id,
        details={
            "order_ref": dispatch.order_ref,
            "awb": dispatch.awb,
            "restored": {i.barcode: i.qty for i in items},
        },
        request=request,
    )
    dispatch.delete()

    logger.info("dispatch.deleted", extra={"dispatch_id": dispatch_id, "lines": len(items)})
    return entries


@transaction.atomic
def report_dispatch_damage(*, dispatch, product, quantity, reason="", notes="", user=None):
    if not dispatch.items.filter(product=product).exists():
        raise DispatchError(f"{product.barcode} is not part of dispatch #{dispatch.pk}")

    return record_damage(
        product=product,
        warehouse=dispatch.warehouse,
        quantity=quantity,
        reason=reason,
        notes=notes,
        dispatch=dispatch,
        user=user,
    )


# ============================================================
# READS
# ============================================================

def filtered_dispatches(params):
    qs = Dispatch.objects.select_related("warehouse", "created_by").prefetch_related("items")

    warehouse = (params.get("warehouse") or "").strip()
    if warehouse and warehouse.upper() != "ALL":
        qs = qs.filter(warehouse__code__iexact=warehouse)

    status = (params.get("status") or "").strip()
    if status:
        qs = qs.filter(status=status)

    date_from = parse_date_param(params.get("date_from"), field="date_from")
    date_to = parse_date_param(params.get("date_to"), field="date_to")
    if date_from:
        qs = qs.filter(created_at__date__gte=date_from)
    if date_to:
        qs = qs.filter(created_at__date__lte=date_to)

    search = (params.get("search") or "").strip()
    if search:
        item_match = DispatchItem.objects.filter(
            Q(barcode__icontains=search) | Q(product_name__icontains=search)
        ).values("dispatch_id")
        qs = qs.filter(
            Q(order_ref__icontains=search)
            | Q(customer__icontains=search)
            | Q(awb__icontains=search)
            | Q(id__in=item_match)
        )

    return qs.order_by("-created_at", "-id")


def dispatch_timeline(dispatch: Dispatch) -> list[dict]:
    events = [
        {
            "type": "DISPATCH_CREATED",
            "timestamp": dispatch.created_at.isoformat(),
            "description": f"Dispatch created with {dispatch.total_qty} units",
            "reference": dispatch.reference,
            "status": dispatch.status,
        }
    ]

    logs = list(dispatch.damage_logs.order_by("created_at", "id"))
    for log in logs:
        events.append(
            {
                "type": "DISPATCH_DAMAGE",
                "timestamp": log.created_at.isoformat(),
                "description": f"Damaged {log.quantity} x {log.barcode}",
                "reference": log.reference,
                "reason": log.reason,
            }
        )

    refs = Q(reference=dispatch.reference) | Q(reference=dispatch_delete_reference(dispatch.pk))
    if logs:
        refs |= Q(reference__in=[log.reference for log in logs])
    for entry in LedgerEntry.objects.filter(refs).order_by("event_time", "id"):
        events.append(
            {
                "type": f"LEDGER_{entry.movement_type}",
                "timestamp": entry.event_time.isoformat(),
                "description": f"{entry.direction} {entry.qty} x {entry.barcode} @ {entry.location_code}",
                "reference": entry.reference,
            }
        )

    events.sort(key=lambda e: e["timestamp"])
    return events


def dispatch_stats(params) -> dict:
    qs = filtered_dispatches(params).order_by()

    per_wh = OrderedDict()
    rows = (
        qs.values("warehouse__code")
        .annotate(
            count=Count("id"),
            amount=Sum("invoice_amount"),
            pending=Count("id", filter=Q(status=Dispatch.Status.PENDING)),
            dispatched=Count("id", filter=Q(status=Dispatch.Status.DISPATCHED)),
            delivered=Count("id", filter=Q(status=Dispatch.Status.DELIVERED)),
        )
        .order_by("warehouse__code")
    )
    for row in rows:
        per_wh[row["warehouse__code"]] = {
            "warehouse": row["warehouse__code"],
            "count": row["count"],
            "qty": 0,
            "amount": str(row["amount"] or Decimal("0.00")),
            "pending": row["pending"],
            "dispatched": row["dispatched"],
            "delivered": row["delivered"],
        }

    qty_rows = (
        DispatchItem.objects.filter(dispatch__in=qs)
        .values("dispatch__warehouse__code")
        .annotate(qty=Sum("qty"))
        .order_by()
    )
    for row in qty_rows:
        slot = per_wh.get(row["dispatch__warehouse__code"])
        if slot is not None:
            slot["qty"] = int(row["qty"] or 0)

    results = list(per_wh.values())
    return {
        "results": results,
        "totals": {
            "count": sum(r["count"] for r in results),
            "qty": sum(r["qty"] for r in results),
            "amount": str(sum((Decimal(r["amount"]) for r in results), Decimal("0.00"))),
        },
    }
