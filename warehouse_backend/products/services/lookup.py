# products/services/lookup.py

from __future__ import annotations

import uuid

from django.db.models import Q

from products.models import Product


def _as_uuid(value):
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


def resolve_product(value, *, include_inactive=False) -> Product:
    """
    Find a product from whatever the client sent:
    - a product id (uuid)
    - a barcode
    - a dropdown label "Name | Variant | Barcode" (barcode is the last part)

    Raises Product.DoesNotExist with a readable message.
    """
    raw = str(value or "").strip()
    if not raw:
        raise Product.DoesNotExist("product is required")

    qs = Product.objects.select_related("category")
    if not include_inactive:
        qs = qs.filter(is_active=True)

    pk = _as_uuid(raw)
    if pk is not None:
        product = qs.filter(pk=pk).first()
        if product is not None:
            return product

    product = qs.filter(barcode=raw).first()
    if product is not None:
        return product

    if "|" in raw:
        barcode = raw.split("|")[-1].strip()
        product = qs.filter(barcode=barcode).first()
        if product is not None:
            return product

    raise Product.DoesNotExist(f"Product not found: {raw}")


def product_suggestions(term, *, limit=10):
    """Top matches by name, variant or barcode; needs at least 2 characters."""
    term = (term or "").strip()
    if len(term) < 2:
        return []

    rows = (
        Product.objects.filter(is_active=True)
        .filter(Q(name__icontains=term) | Q(variant__icontains=term) | Q(barcode__icontains=term))
        .order_by("name", "variant")[:limit]
    )
    return [
        {
            "id": str(p.id),
            "barcode": p.barcode,
            "name": p.name,
            "variant": p.variant,
            "label": p.label,
        }
        for p in rows
    ]
