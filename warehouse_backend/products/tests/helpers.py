# products/tests/helpers.py

from __future__ import annotations

from datetime import timedelta

from django.utils import timezone

from products.models import Product, StockBatch
from products.services.stock_intake import receive_stock
from warehouses.models import Warehouse


def make_warehouse(code="WH1", name=None) -> Warehouse:
    return Warehouse.objects.create(code=code, name=name or f"Warehouse {code}")


def make_product(barcode="8900001", name="Steel Bottle", variant="1L", **extra) -> Product:
    return Product.objects.create(barcode=barcode, name=name, variant=variant, **extra)


def add_batch(product, warehouse, qty, *, age_minutes=0, source_type=StockBatch.SourceType.OPENING, user=None):
    """
    Receive stock and pin the batch's created_at `age_minutes` in the past,
    so FIFO/LIFO ordering in tests never depends on clock resolution.
    """
    ref = f"{source_type}_{product.barcode}_{StockBatch.objects.count() + 1}"
    batch, _entry = receive_stock(
        product=product,
        warehouse=warehouse,
        quantity=qty,
        source_type=source_type,
        source_ref=ref,
        reference=ref,
        user=user,
    )
    if age_minutes:
        created = timezone.now() - timedelta(minutes=age_minutes)
        StockBatch.objects.filter(pk=batch.pk).update(created_at=created)
        batch.refresh_from_db()
    return batch
