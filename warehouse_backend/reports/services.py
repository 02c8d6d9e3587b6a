# reports/services.py

"""
======================================================
PATH: reports/services.py
======================================================
REPORTING (read only)

dashboard_kpis()       headline numbers for the landing page
warehouse_volume()     per location: stock on hand, dispatches, returns, damages
recent_activity()      newest ledger rows
dispatch_heatmap()     dispatch counts by weekday x hour over the last N days
global_search()        products, dispatches, orders and returns in one call
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.db.models import Count, Q, Sum
from django.db.models.functions import ExtractHour, ExtractWeekDay
from django.utils import timezone

from damages.models import DamageRecoveryLog
from dispatches.models import Dispatch
from orders.models import Order
from products.models import LedgerEntry, Product, StockBatch
from products.services.inventory import InventoryFilters, inventory_stats
from returns.models import Return
from warehouses.models import Warehouse

SEARCH_TYPES = ("products", "dispatches", "orders", "returns")

WEEKDAYS = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def _money(value) -> str:
    return str(Decimal(value or 0).quantize(Decimal("0.01")))


def dashboard_kpis() -> dict:
    now = timezone.now()
    today = timezone.localdate()
    month_ago = now - timedelta(days=30)

    stock = inventory_stats(InventoryFilters())

    dispatches_today = Dispatch.objects.filter(created_at__date=today).aggregate(
        count=Count("id"), amount=Sum("invoice_amount")
    )
    pending_dispatches = Dispatch.objects.filter(
        status__in=[Dispatch.Status.PENDING, Dispatch.Status.PROCESSING]
    ).count()

    returns = Return.objects.filter(submitted_at__gte=month_ago).aggregate(
        count=Count("id"),
        quantity=Sum("quantity"),
        restocked=Sum("quantity", filter=Q(stock_added=True)),
    )
    damages = DamageRecoveryLog.objects.filter(
        created_at__gte=month_ago, action_type=DamageRecoveryLog.ActionType.DAMAGE
    ).aggregate(count=Count("id"), quantity=Sum("quantity"))

    orders = Order.objects.filter(is_active=True).aggregate(
        count=Count("id"),
        pending=Count("id", filter=Q(status__iexact="pending")),
        amount=Sum("invoice_amount"),
    )

    return {
        "stock": {
            "total_units": stock["total_stock"],
            "product_locations": stock["total_products"],
            "low_stock": stock["low_stock"],
            "out_of_stock": stock["out_of_stock"],
            "threshold": stock["threshold"],
        },
        "products": Product.objects.filter(is_active=True).count(),
        "warehouses": Warehouse.objects.filter(is_active=True).count(),
        "dispatches": {
            "today": dispatches_today["count"],
            "today_amount": _money(dispatches_today["amount"]),
            "pending": pending_dispatches,
        },
        "returns_30d": {
            "count": returns["count"],
            "quantity": int(returns["quantity"] or 0),
            "restocked": int(returns["restocked"] or 0),
        },
        "damages_30d": {
            "count": damages["count"],
            "quantity": int(damages["quantity"] or 0),
        },
        "orders": {
            "active": orders["count"],
            "pending": orders["pending"],
            "amount": _money(orders["amount"]),
        },
        "generated_at": now.isoformat(),
    }


def warehouse_volume() -> list[dict]:
    stock = {
        row["warehouse_id"]: int(row["units"] or 0)
        for row in StockBatch.objects.filter(status=StockBatch.Status.ACTIVE)
        .values("warehouse_id")
        .annotate(units=Sum("qty_available"))
        .order_by()
    }
    moved = {
        (row["warehouse_id"], row["movement_type"]): int(row["qty"] or 0)
        for row in LedgerEntry.objects.filter(
            movement_type__in=[
                LedgerEntry.MovementType.DISPATCH,
                LedgerEntry.MovementType.RETURN,
                LedgerEntry.MovementType.DAMAGE,
                LedgerEntry.MovementType.DISPATCH_DAMAGE,
            ]
        )
        .values("warehouse_id", "movement_type")
        .annotate(qty=Sum("qty"))
        .order_by()
    }
    dispatch_counts = {
        row["warehouse_id"]: row["count"]
        for row in Dispatch.objects.values("warehouse_id").annotate(count=Count("id")).order_by()
    }

    results = []
    for wh in Warehouse.objects.filter(is_active=True).order_by("code"):
        damaged = moved.get((wh.pk, LedgerEntry.MovementType.DAMAGE), 0) + moved.get(
            (wh.pk, LedgerEntry.MovementType.DISPATCH_DAMAGE), 0
        )
        results.append(
            {
                "warehouse": wh.code,
                "warehouse_name": wh.name,
                "kind": wh.kind,
                "stock_units": stock.get(wh.pk, 0),
                "dispatch_count": dispatch_counts.get(wh.pk, 0),
                "dispatched_qty": moved.get((wh.pk, LedgerEntry.MovementType.DISPATCH), 0),
                "returned_qty": moved.get((wh.pk, LedgerEntry.MovementType.RETURN), 0),
                "damaged_qty": damaged,
            }
        )
    return results


def recent_activity(*, limit=20, warehouse=""):
    qs = LedgerEntry.objects.select_related("performed_by")
    if warehouse and warehouse.upper() != "ALL":
        qs = qs.filter(location_code__iexact=warehouse)
    return list(qs.order_by("-event_time", "-id")[:limit])


def dispatch_heatmap(*, days=30) -> dict:
    since = timezone.now() - timedelta(days=days)
    rows = (
        Dispatch.objects.filter(created_at__gte=since)
        .annotate(weekday=ExtractWeekDay("created_at"), hour=ExtractHour("created_at"))
        .values("weekday", "hour")
        .annotate(count=Count("id"))
        .order_by("weekday", "hour")
    )
    # ExtractWeekDay: 1 = Sunday ... 7 = Saturday
    grid = [[0] * 24 for _ in WEEKDAYS]
    for row in rows:
        grid[row["weekday"] - 1][row["hour"]] = row["count"]

    return {
        "days": WEEKDAYS,
        "hours": list(range(24)),
        "grid": grid,
        "total": sum(sum(day) for day in grid),
        "period_days": days,
    }


# ============================================================
# GLOBAL SEARCH
# ============================================================

def _search_products(term, limit):
    qs = Product.objects.filter(is_active=True).filter(
        Q(name__icontains=term) | Q(barcode__icontains=term) | Q(variant__icontains=term)
    )
    return [
        {"id": str(p.pk), "barcode": p.barcode, "name": p.name, "variant": p.variant, "label": p.label}
        for p in qs.order_by("name")[:limit]
    ]


def _search_dispatches(term, limit):
    qs = Dispatch.objects.select_related("warehouse").filter(
        Q(order_ref__icontains=term)
        | Q(awb__icontains=term)
        | Q(customer__icontains=term)
        | Q(items__barcode__icontains=term)
        | Q(items__product_name__icontains=term)
    ).distinct()
    return [
        {
            "id": d.pk,
            "order_ref": d.order_ref,
            "awb": d.awb,
            "customer": d.customer,
            "warehouse": d.warehouse.code,
            "status": d.status,
            "created_at": d.created_at.isoformat(),
        }
        for d in qs.order_by("-created_at", "-id")[:limit]
    ]


def _search_orders(term, limit):
    qs = Order.objects.filter(is_active=True).select_related("warehouse").filter(
        Q(customer__icontains=term)
        | Q(product_name__icontains=term)
        | Q(awb__icontains=term)
        | Q(order_ref__icontains=term)
    )
    return [
        {
            "id": o.pk,
            "customer": o.customer,
            "product_name": o.product_name,
            "order_ref": o.order_ref,
            "awb": o.awb,
            "warehouse": o.warehouse.code,
            "status": o.status,
        }
        for o in qs.order_by("-created_at", "-id")[:limit]
    ]


def _search_returns(term, limit):
    qs = Return.objects.select_related("warehouse").filter(
        Q(product_name__icontains=term)
        | Q(barcode__icontains=term)
        | Q(awb__icontains=term)
        | Q(order_ref__icontains=term)
    )
    return [
        {
            "id": r.pk,
            "barcode": r.barcode,
            "product_name": r.product_name,
            "awb": r.awb,
            "warehouse": r.warehouse.code,
            "condition": r.condition,
            "status": r.status,
        }
        for r in qs.order_by("-submitted_at", "-id")[:limit]
    ]


_SEARCHERS = {
    "products": _search_products,
    "dispatches": _search_dispatches,
    "orders": _search_orders,
    "returns": _search_returns,
}


def global_search(term, *, types=SEARCH_TYPES, limit=10) -> dict:
    term = (term or "").strip()
    results = {kind: _SEARCHERS[kind](term, limit) for kind in types}
    return {
        "query": term,
        "results": results,
        "total": sum(len(rows) for rows in results.values()),
    }
