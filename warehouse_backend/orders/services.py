# orders/services.py

"""
ORDER SHEET SERVICES

universal_search(): every token must match at least one of the searchable
columns; newest first, capped at SEARCH_LIMIT rows.
"""

from __future__ import annotations

import logging
from functools import reduce
from operator import or_

from django.db import transaction
from django.db.models import Q

from audit.models import AuditLog
from audit.services import record_audit
from orders.models import Order

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 1000
SUGGESTION_LIMIT = 20

SEARCH_FIELDS = (
    "customer",
    "product_name",
    "awb",
    "order_ref",
    "warehouse__code",
    "status",
    "payment_mode",
    "remark",
)

# (field, type label) in the order suggestions are offered
SUGGESTION_FIELDS = (
    ("customer", "customer"),
    ("product_name", "product"),
    ("awb", "awb"),
    ("order_ref", "order_ref"),
    ("warehouse__code", "warehouse"),
    ("status", "status"),
)


def active_orders():
    return Order.objects.filter(is_active=True).select_related("warehouse", "created_by")


def universal_search(tokens, *, limit=SEARCH_LIMIT):
    qs = active_orders()
    for token in tokens:
        token = str(token or "").strip()
        if not token:
            continue
        qs = qs.filter(reduce(or_, (Q(**{f"{field}__icontains": token}) for field in SEARCH_FIELDS)))
    return list(qs.order_by("-created_at", "-id")[:limit])


def search_suggestions(term, *, limit=SUGGESTION_LIMIT) -> list[dict]:
    term = (term or "").strip()
    if len(term) < 2:
        return []

    seen = set()
    results = []
    for field, kind in SUGGESTION_FIELDS:
        values = (
            Order.objects.filter(is_active=True, **{f"{field}__icontains": term})
            .values_list(field, flat=True)
            .order_by(field)
            .distinct()[:limit]
        )
        for value in values:
            if not value or (kind, value) in seen:
                continue
            seen.add((kind, value))
            results.append({"value": value, "type": kind})
            if len(results) >= limit:
                return results
    return results


@transaction.atomic
def create_order(*, warehouse, user=None, request=None, **fields) -> Order:
    order = Order.objects.create(
        warehouse=warehouse,
        created_by=user if getattr(user, "is_authenticated", False) else None,
        **fields,
    )
    record_audit(
        user=user,
        action=AuditLog.Action.CREATE,
        resource="orders",
        resource_id=order.pk,
        details={
            "customer": order.customer,
            "product_name": order.product_name,
            "quantity": order.quantity,
            "warehouse": warehouse.code,
            "order_ref": order.order_ref,
            "awb": order.awb,
        },
        request=request,
    )
    logger.info("order.created", extra={"order_id": order.pk, "warehouse": warehouse.code})
    return order


@transaction.atomic
def update_remark(*, order, remark, user=None, request=None) -> Order:
    old = order.remark
    order.remark = remark or ""
    order.save(update_fields=["remark", "updated_at"])

    record_audit(
        user=user,
        action=AuditLog.Action.UPDATE,
        resource="orders",
        resource_id=order.pk,
        details={
            "field": "remark",
            "old_value": old,
            "new_value": order.remark,
            "customer": order.customer,
            "product": order.product_name,
        },
        request=request,
    )
    return order


@transaction.atomic
def delete_order(*, order, user=None, request=None) -> None:
    order.is_active = False
    order.save(update_fields=["is_active", "updated_at"])

    record_audit(
        user=user,
        action=AuditLog.Action.DELETE,
        resource="orders",
        resource_id=order.pk,
        details={
            "warehouse": order.warehouse.code,
            "customer": order.customer,
            "product": order.product_name,
            "order_ref": order.order_ref,
            "awb": order.awb,
        },
        request=request,
    )
    logger.info("order.deleted", extra={"order_id": order.pk})
