# products/services/inventory.py

"""
======================================================
PATH: products/services/inventory.py
======================================================
INVENTORY READ MODEL

Purpose:
- Group stock batches per product+warehouse:
    stock      = SUM(qty_available)
    updated_at = MAX(created_at)
- Filters: warehouse, search, date range, stock_filter; sortable.
- Stats block, CSV export, product tracking and low-stock listing.

Rules:
- Exhausted batches stay in the grouping (they contribute 0), so a product
  that ran out still shows up as out-of-stock.
- The low-stock threshold is global: settings.LOW_STOCK_THRESHOLD.
"""

from __future__ import annotations

import csv
from dataclasses import dataclass
from datetime import date

from django.conf import settings
from django.db.models import Count, F, Max, Q, Sum
from django.utils.dateparse import parse_date

from products.models import StockBatch


class InventoryFilterError(ValueError):
    """Bad query parameter (mapped to HTTP 400)."""


STOCK_FILTERS = {"in-stock", "low-stock", "out-of-stock"}

SORT_FIELDS = {
    "product_name": "product_name",
    "stock": "stock",
    "warehouse": "warehouse_code",
    "updated_at": "updated_at",
}

EXPORT_COLUMNS = [
    "barcode",
    "product_name",
    "variant",
    "warehouse_code",
    "warehouse_name",
    "stock",
    "batch_count",
    "updated_at",
]


def low_stock_threshold() -> int:
    return int(getattr(settings, "LOW_STOCK_THRESHOLD", 10))


def parse_date_param(value, *, field: str) -> date | None:
    raw = (value or "").strip()
    if not raw:
        return None
    try:
        parsed = parse_date(raw)
    except ValueError:
        parsed = None
    if parsed is None:
        raise InventoryFilterError(f"{field} must be a date (YYYY-MM-DD)")
    return parsed


@dataclass
class InventoryFilters:
    warehouse: str = ""
    search: str = ""
    date_from: date | None = None
    date_to: date | None = None
    stock_filter: str = ""
    sort_by: str = "updated_at"
    sort_order: str = "desc"

    @classmethod
    def from_params(cls, params, **overrides):
        def get(name):
            return (params.get(name) or "").strip()

        stock_filter = get("stock_filter").lower()
        if stock_filter in {"all", ""}:
            stock_filter = ""
        elif stock_filter not in STOCK_FILTERS:
            raise InventoryFilterError(
                f"stock_filter must be one of: {', '.join(sorted(STOCK_FILTERS))}"
            )

        sort_by = get("sort_by") or "updated_at"
        if sort_by not in SORT_FIELDS:
            raise InventoryFilterError(f"sort_by must be one of: {', '.join(SORT_FIELDS)}")

        sort_order = (get("sort_order") or "desc").lower()
        if sort_order not in {"asc", "desc"}:
            raise InventoryFilterError("sort_order must be asc or desc")

        warehouse = get("warehouse")
        if warehouse.upper() == "ALL":
            warehouse = ""

        values = {
            "warehouse": warehouse,
            "search": get("search"),
            "date_from": parse_date_param(params.get("date_from"), field="date_from"),
            "date_to": parse_date_param(params.get("date_to"), field="date_to"),
            "stock_filter": stock_filter,
            "sort_by": sort_by,
            "sort_order": sort_order,
        }
        values.update(overrides)
        return cls(**values)


# ============================================================
# GROUPED INVENTORY
# ============================================================

def _base_batches(filters: InventoryFilters):
    qs = StockBatch.objects.filter(product__is_active=True)

    if filters.warehouse:
        qs = qs.filter(warehouse__code__iexact=filters.warehouse)

    if filters.search:
        term = filters.search
        qs = qs.filter(
            Q(product__name__icontains=term)
            | Q(product__barcode__icontains=term)
            | Q(product__variant__icontains=term)
        )

    if filters.date_from:
        qs = qs.filter(created_at__date__gte=filters.date_from)
    if filters.date_to:
        qs = qs.filter(created_at__date__lte=filters.date_to)

    return qs


def _grouped(qs):
    return qs.values(
        "product_id",
        "warehouse_id",
        barcode=F("product__barcode"),
        product_name=F("product__name"),
        variant=F("product__variant"),
        warehouse_code=F("warehouse__code"),
        warehouse_name=F("warehouse__name"),
    ).annotate(
        stock=Sum("qty_available"),
        batch_count=Count("id"),
        updated_at=Max("created_at"),
    )


def _apply_stock_filter(rows, stock_filter: str, threshold: int):
    if stock_filter == "in-stock":
        return rows.filter(stock__gt=threshold)
    if stock_filter == "low-stock":
        return rows.filter(stock__gt=0, stock__lte=threshold)
    if stock_filter == "out-of-stock":
        return rows.filter(stock=0)
    return rows


def grouped_inventory(filters: InventoryFilters):
    """Grouped rows (values() queryset) with stock filter and ordering applied."""
    threshold = low_stock_threshold()
    rows = _apply_stock_filter(_grouped(_base_batches(filters)), filters.stock_filter, threshold)

    field = SORT_FIELDS[filters.sort_by]
    ordering = field if filters.sort_order == "asc" else f"-{field}"
    return rows.order_by(ordering, "product_name", "warehouse_code")


def inventory_stats(filters: InventoryFilters) -> dict:
    """Totals over the filtered grouping, ignoring stock_filter."""
    threshold = low_stock_threshold()
    total_products = 0
    total_stock = 0
    low = 0
    out = 0

    for row in _grouped(_base_batches(filters)).order_by():
        stock = int(row["stock"] or 0)
        total_products += 1
        total_stock += stock
        if stock == 0:
            out += 1
        elif stock <= threshold:
            low += 1

    return {
        "total_products": total_products,
        "total_stock": total_stock,
        "low_stock": low,
        "out_of_stock": out,
        "threshold": threshold,
    }


def serialize_row(row: dict) -> dict:
    threshold = low_stock_threshold()
    stock = int(row["stock"] or 0)
    if stock == 0:
        state = "out-of-stock"
    elif stock <= threshold:
        state = "low-stock"
    else:
        state = "in-stock"

    return {
        "product_id": str(row["product_id"]),
        "barcode": row["barcode"],
        "product_name": row["product_name"],
        "variant": row["variant"],
        "warehouse": row["warehouse_code"],
        "warehouse_name": row["warehouse_name"],
        "stock": stock,
        "batch_count": row["batch_count"],
        "updated_at": row["updated_at"].isoformat() if row["updated_at"] else None,
        "stock_status": state,
    }


def write_inventory_csv(rows, out) -> int:
    """Write grouped rows to a file-like object; returns the row count."""
    writer = csv.writer(out)
    writer.writerow(EXPORT_COLUMNS)
    count = 0
    for row in rows:
        writer.writerow(
            [
                row["barcode"],
                row["product_name"],
                row["variant"],
                row["warehouse_code"],
                row["warehouse_name"],
                int(row["stock"] or 0),
                row["batch_count"],
                row["updated_at"].isoformat() if row["updated_at"] else "",
            ]
        )
        count += 1
    return count


# ============================================================
# PRODUCT TRACKING / LOW STOCK
# ============================================================

def product_tracking(product) -> dict:
    batches = (
        StockBatch.objects.filter(product=product)
        .select_related("warehouse")
        .order_by("warehouse__code", "created_at", "id")
    )

    per_warehouse: dict[str, dict] = {}
    for b in batches:
        slot = per_warehouse.setdefault(
            b.warehouse.code,
            {
                "warehouse": b.warehouse.code,
                "warehouse_name": b.warehouse.name,
                "stock": 0,
                "batches": [],
            },
        )
        slot["stock"] += int(b.qty_available)
        slot["batches"].append(
            {
                "id": str(b.id),
                "source_type": b.source_type,
                "source_ref": b.source_ref,
                "qty_initial": b.qty_initial,
                "qty_available": b.qty_available,
                "status": b.status,
                "created_at": b.created_at.isoformat(),
            }
        )

    warehouses = list(per_warehouse.values())
    return {
        "product": {
            "id": str(product.id),
            "barcode": product.barcode,
            "name": product.name,
            "variant": product.variant,
            "label": product.label,
        },
        "total_stock": sum(w["stock"] for w in warehouses),
        "warehouses": warehouses,
    }


def low_stock_rows(*, warehouse: str = "", threshold: int | None = None):
    """Grouped rows at or below the threshold (out-of-stock included), lowest first."""
    limit = low_stock_threshold() if threshold is None else int(threshold)
    rows = _grouped(_base_batches(InventoryFilters(warehouse=warehouse)))
    return rows.filter(stock__lte=limit).order_by("stock", "product_name", "warehouse_code")
