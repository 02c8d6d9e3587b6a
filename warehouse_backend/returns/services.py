# returns/services.py

"""
RETURN SERVICES

create_return()
- The Return row is written first; its id goes into the ledger reference.
- Only condition "good" opens a RETURN batch and writes a RETURN IN row.
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.db.models import Count, Q, Sum

from audit.models import AuditLog
from audit.services import record_audit
from products.models import LedgerEntry, StockBatch
from products.services.inventory import parse_date_param
from products.services.stock_fifo import StockError, require_positive_qty
from products.services.stock_intake import receive_stock
from returns.models import Return

logger = logging.getLogger(__name__)


class ReturnError(StockError):
    pass


@transaction.atomic
def create_return(
    *,
    product,
    warehouse,
    quantity,
    condition=Return.Condition.GOOD,
    order_ref="",
    awb="",
    has_parts=False,
    return_reason="",
    processed_by="",
    user=None,
):
    """Returns (return, ledger_entry or None)."""
    qty = require_positive_qty(quantity)
    if condition not in Return.Condition.values:
        raise ReturnError(f"condition must be one of: {', '.join(Return.Condition.values)}")

    ret = Return.objects.create(
        order_ref=(order_ref or "").strip(),
        awb=(awb or "").strip(),
        product=product,
        product_name=product.name,
        barcode=product.barcode,
        warehouse=warehouse,
        quantity=qty,
        has_parts=bool(has_parts),
        return_reason=(return_reason or "").strip(),
        condition=condition,
        processed_by=(processed_by or "").strip(),
        created_by=user if getattr(user, "is_authenticated", False) else None,
    )

    entry = None
    if condition == Return.Condition.GOOD:
        _batch, entry = receive_stock(
            product=product,
            warehouse=warehouse,
            quantity=qty,
            source_type=StockBatch.SourceType.RETURN,
            source_ref=ret.reference,
            reference=ret.reference,
            movement_type=LedgerEntry.MovementType.RETURN,
            unit_cost=product.cost_price,
            user=user,
        )
        ret.stock_added = True
        ret.save(update_fields=["stock_added"])

    logger.info(
        "return.created",
        extra={
            "return_id": ret.pk,
            "barcode": product.barcode,
            "warehouse": warehouse.code,
            "qty": qty,
            "condition": condition,
        },
    )
    return ret, entry


@transaction.atomic
def update_return_status(*, ret, status, notes=None, user=None, request=None) -> Return:
    if status not in Return.Status.values:
        raise ReturnError("Invalid status")

    old_status = ret.status
    ret.status = status
    fields = ["status", "updated_at"]
    if notes is not None:
        ret.notes = notes
        fields.append("notes")
    ret.save(update_fields=fields)

    record_audit(
        user=user,
        action=AuditLog.Action.UPDATE,
        resource="returns",
        resource_id=ret.pk,
        details={
            "old_status": old_status,
            "new_status": status,
            "notes": notes,
            "barcode": ret.barcode,
        },
        request=request,
    )
    return ret


# ============================================================
# READS
# ============================================================

def filtered_returns(params):
    """warehouse, condition, status, date_from, date_to, search."""
    qs = Return.objects.select_related("warehouse", "created_by")

    warehouse = (params.get("warehouse") or "").strip()
    if warehouse and warehouse.upper() != "ALL":
        qs = qs.filter(warehouse__code__iexact=warehouse)

    condition = (params.get("condition") or "").strip().lower()
    if condition:
        qs = qs.filter(condition=condition)

    status = (params.get("status") or "").strip().lower()
    if status:
        qs = qs.filter(status=status)

    date_from = parse_date_param(params.get("date_from"), field="date_from")
    date_to = parse_date_param(params.get("date_to"), field="date_to")
    if date_from:
        qs = qs.filter(submitted_at__date__gte=date_from)
    if date_to:
        qs = qs.filter(submitted_at__date__lte=date_to)

    search = (params.get("search") or "").strip()
    if search:
        qs = qs.filter(
            Q(product_name__icontains=search)
            | Q(barcode__icontains=search)
            | Q(awb__icontains=search)
            | Q(order_ref__icontains=search)
        )

    return qs.order_by("-submitted_at", "-id")


def return_ledger_entries(ret):
    return list(LedgerEntry.objects.filter(reference=ret.reference).select_related("warehouse"))


def _breakdown(qs, field, key):
    rows = qs.values(field).annotate(count=Count("id"), quantity=Sum("quantity")).order_by(field)
    return [{key: row[field], "count": row["count"], "quantity": int(row["quantity"] or 0)} for row in rows]


def return_statistics(params) -> dict:
    qs = filtered_returns(params)
    totals = qs.aggregate(
        count=Count("id"),
        quantity=Sum("quantity"),
        restocked=Sum("quantity", filter=Q(stock_added=True)),
    )
    top = (
        qs.values("barcode", "product_name")
        .annotate(return_count=Count("id"), total_returned=Sum("quantity"))
        .order_by("-return_count", "barcode")[:10]
    )
    return {
        "totals": {
            "count": totals["count"],
            "quantity": int(totals["quantity"] or 0),
            "restocked": int(totals["restocked"] or 0),
        },
        "by_condition": _breakdown(qs, "condition", "condition"),
        "by_status": _breakdown(qs, "status", "status"),
        "by_warehouse": _breakdown(qs, "warehouse__code", "warehouse"),
        "top_returned": [
            {
                "barcode": row["barcode"],
                "product_name": row["product_name"],
                "return_count": row["return_count"],
                "total_returned": int(row["total_returned"] or 0),
            }
            for row in top
        ],
    }
