# products/services/timeline.py

"""
======================================================
PATH: products/services/timeline.py
======================================================
PRODUCT TIMELINE (LEDGER REPLAY)

Rules:
- Every matching row is replayed oldest first, so balance_after and the
  summary cover the full history; `limit` only trims the returned timeline
  to the newest N rows.
- OPENING is counted ONCE per barcode+warehouse; later OPENING rows are
  duplicates and are skipped entirely.
- The timeline is returned newest first.
- total_in excludes OPENING (it is reported as opening_stock).
"""

from __future__ import annotations

from collections import deque

from django.db.models import Count, Max, Q, Sum

from products.models import LedgerEntry
from products.services.inventory import parse_date_param

DEFAULT_LIMIT = 50
MAX_LIMIT = 1000

MT = LedgerEntry.MovementType

_DESCRIPTIONS = {
    MT.PURCHASE: "Purchased {qty} units",
    MT.BULK_UPLOAD: "Added {qty} units (bulk upload)",
    MT.ADJUSTMENT: "Adjusted {qty} units ({direction})",
    MT.DISPATCH: "Dispatched {qty} units",
    MT.DISPATCH_REVERSAL: "Restored {qty} units (dispatch deleted)",
    MT.DISPATCH_DAMAGE: "Damaged {qty} units in dispatch",
    MT.DAMAGE: "Damaged {qty} units",
    MT.RECOVER: "Recovered {qty} units",
    MT.RETURN: "Returned {qty} units",
    MT.SELF_TRANSFER: "Self transfer {qty} units ({direction})",
}

_BREAKDOWN_KEYS = {
    MT.PURCHASE: "purchase",
    MT.BULK_UPLOAD: "bulk_upload",
    MT.ADJUSTMENT: "adjustment",
    MT.DISPATCH: "dispatch",
    MT.DISPATCH_REVERSAL: "dispatch_reversal",
    MT.DISPATCH_DAMAGE: "dispatch_damage",
    MT.DAMAGE: "damage",
    MT.RECOVER: "recovery",
    MT.RETURN: "returns",
}


def describe(entry: LedgerEntry) -> str:
    if entry.movement_type == MT.OPENING:
        return f"Opening stock: {entry.qty} units"
    template = _DESCRIPTIONS.get(entry.movement_type, "{type} {qty} units")
    return template.format(qty=entry.qty, direction=entry.direction, type=entry.movement_type)


def _parse_limit(value) -> int:
    raw = str(value or "").strip()
    if not raw:
        return DEFAULT_LIMIT
    if not raw.isdigit() or int(raw) <= 0:
        raise ValueError("limit must be a positive integer")
    return min(int(raw), MAX_LIMIT)


def product_timeline(barcode: str, params) -> dict:
    """
    Replay ledger rows for one barcode.

    params: warehouse (ALL = no filter), date_from, date_to, limit.
    """
    barcode = (barcode or "").strip()
    if not barcode:
        raise ValueError("Product code/barcode is required")

    warehouse = (params.get("warehouse") or "").strip()
    date_from = parse_date_param(params.get("date_from"), field="date_from")
    date_to = parse_date_param(params.get("date_to"), field="date_to")
    limit = _parse_limit(params.get("limit"))

    qs = LedgerEntry.objects.filter(barcode=barcode)
    if warehouse and warehouse.upper() != "ALL":
        qs = qs.filter(location_code__iexact=warehouse)
    if date_from:
        qs = qs.filter(event_time__date__gte=date_from)
    if date_to:
        qs = qs.filter(event_time__date__lte=date_to)

    rows = qs.order_by("event_time", "id").iterator()

    opening_seen: set[tuple[str, str]] = set()
    balance = 0
    opening_stock = 0
    total_in = 0
    total_out = 0
    breakdown = {key: 0 for key in _BREAKDOWN_KEYS.values()}
    breakdown.update({"opening": 0, "self_transfer_in": 0, "self_transfer_out": 0})

    recent: deque = deque(maxlen=limit)
    for entry in rows:
        qty = int(entry.qty)

        if entry.movement_type == MT.OPENING:
            key = (entry.barcode, entry.location_code)
            if key in opening_seen:
                continue
            opening_seen.add(key)
            opening_stock += qty
            breakdown["opening"] += qty
            balance += qty
        else:
            if entry.direction == LedgerEntry.Direction.IN:
                balance += qty
                total_in += qty
            else:
                balance -= qty
                total_out += qty

            if entry.movement_type == MT.SELF_TRANSFER:
                side = "in" if entry.direction == LedgerEntry.Direction.IN else "out"
                breakdown[f"self_transfer_{side}"] += qty
            else:
                breakdown[_BREAKDOWN_KEYS[entry.movement_type]] += qty

        recent.append(
            {
                "id": entry.id,
                "timestamp": entry.event_time.isoformat(),
                "type": entry.movement_type,
                "direction": entry.direction,
                "barcode": entry.barcode,
                "product_name": entry.product_name,
                "warehouse": entry.location_code,
                "quantity": qty,
                "reference": entry.reference,
                "balance_after": balance,
                "description": describe(entry),
            }
        )

    timeline = list(reversed(recent))

    return {
        "product_code": barcode,
        "warehouse_filter": warehouse or "ALL",
        "timeline": timeline,
        "summary": {
            "opening_stock": opening_stock,
            "total_in": total_in,
            "total_out": total_out,
            "net_movement": total_in - total_out,
            "current_stock": balance,
            "breakdown": breakdown,
        },
    }


def timeline_summary(*, warehouse: str = "", limit: int = 100) -> list[dict]:
    """Movement totals per barcode, most recently moved first."""
    qs = LedgerEntry.objects.all()
    if warehouse and warehouse.upper() != "ALL":
        qs = qs.filter(location_code__iexact=warehouse)

    rows = (
        qs.values("barcode", "product_name")
        .annotate(
            total_movements=Count("id"),
            total_in=Sum("qty", filter=Q(direction=LedgerEntry.Direction.IN)),
            total_out=Sum("qty", filter=Q(direction=LedgerEntry.Direction.OUT)),
            last_movement=Max("event_time"),
        )
        .order_by("-last_movement")[:limit]
    )

    out = []
    for row in rows:
        total_in = int(row["total_in"] or 0)
        total_out = int(row["total_out"] or 0)
        out.append(
            {
                "barcode": row["barcode"],
                "product_name": row["product_name"],
                "total_movements": row["total_movements"],
                "total_in": total_in,
                "total_out": total_out,
                "net_movement": total_in - total_out,
                "last_movement": row["last_movement"].isoformat() if row["last_movement"] else None,
            }
        )
    return out
