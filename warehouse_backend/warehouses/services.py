# warehouses/services.py

"""
Warehouse lookup.

Request payloads identify warehouses loosely (code, uuid, or display name);
resolve_warehouse() turns any of those into an active Warehouse row.
"""

from __future__ import annotations

import uuid

from django.db.models import Q

from warehouses.models import Warehouse


def resolve_warehouse(value, *, include_inactive: bool = False) -> Warehouse:
    if isinstance(value, Warehouse):
        return value

    raw = str(value or "").strip()
    if not raw:
        raise Warehouse.DoesNotExist("warehouse is required")

    qs = Warehouse.objects.all()
    if not include_inactive:
        qs = qs.filter(is_active=True)

    try:
        as_uuid = uuid.UUID(raw)
    except ValueError:
        as_uuid = None

    if as_uuid is not None:
        found = qs.filter(id=as_uuid).first()
    else:
        found = qs.filter(Q(code__iexact=raw) | Q(name__iexact=raw)).order_by("code").first()

    if found is None:
        raise Warehouse.DoesNotExist(f"Unknown warehouse: {raw}")
    return found
