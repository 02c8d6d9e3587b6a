# products/services/bulk_upload.py

"""
BULK STOCK UPLOAD

Input: CSV text (header: barcode, product_name, variant, qty, unit_cost) or
already-parsed rows (list of dicts with the same keys).

Rules:
- Every row is validated on its own; one bad row never blocks the others.
- Each valid row is a BULK_UPLOAD stock entry (own batch + ledger IN) inside
  its own savepoint, so a failed row leaves no partial stock behind.
- Unknown barcodes are created from product_name/variant.
- The run is recorded as a BulkUpload row (counts + per-row errors).
"""

from __future__ import annotations

import csv
import io
import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction

from products.models import BulkUpload, StockBatch
from products.services.stock_fifo import StockError, _to_int_qty
from products.services.stock_intake import add_stock_entry

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {"barcode", "qty"}


class BulkUploadError(Exception):
    """The upload as a whole is unusable (bad file, no rows, too many rows)."""


def _max_rows() -> int:
    return int(getattr(settings, "BULK_UPLOAD_MAX_ROWS", 5000))


def parse_csv(content) -> list[dict]:
    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise BulkUploadError("File must be UTF-8 encoded CSV") from exc

    reader = csv.DictReader(io.StringIO(content))
    header = {(h or "").strip().lower() for h in (reader.fieldnames or [])}
    missing = REQUIRED_COLUMNS - header
    if missing:
        raise BulkUploadError(f"Missing required column(s): {', '.join(sorted(missing))}")

    rows = []
    for raw in reader:
        rows.append({(k or "").strip().lower(): (v or "").strip() for k, v in raw.items() if k})
    return rows


def _row_value(row: dict, *names) -> str:
    for name in names:
        value = row.get(name)
        if value not in (None, ""):
            return str(value).strip()
    return ""


def process_bulk_upload(*, rows, warehouse, file_name="upload.csv", user=None) -> BulkUpload:
    if not rows:
        raise BulkUploadError("No rows to upload")
    if len(rows) > _max_rows():
        raise BulkUploadError(f"Too many rows ({len(rows)}); the limit is {_max_rows()}")

    success = 0
    total_qty = 0
    errors = []

    # Row numbers are 1-based and count the CSV header as row 1.
    for index, row in enumerate(rows, start=2):
        barcode = _row_value(row, "barcode")
        try:
            if not barcode:
                raise StockError("barcode is required")

            qty = _to_int_qty(_row_value(row, "qty", "quantity"))
            if qty <= 0:
                raise StockError("qty must be greater than zero")

            with transaction.atomic():
                add_stock_entry(
                    warehouse=warehouse,
                    quantity=qty,
                    barcode=barcode,
                    product_name=_row_value(row, "product_name", "name"),
                    variant=_row_value(row, "variant"),
                    source_type=StockBatch.SourceType.BULK_UPLOAD,
                    unit_cost=_row_value(row, "unit_cost") or None,
                    user=user,
                )
        except (StockError, ValidationError) as exc:
            message = "; ".join(exc.messages) if isinstance(exc, ValidationError) else str(exc)
            errors.append({"row": index, "barcode": barcode, "error": message})
            continue

        success += 1
        total_qty += qty

    upload = BulkUpload.objects.create(
        file_name=file_name,
        warehouse=warehouse,
        total_rows=len(rows),
        success_rows=success,
        failed_rows=len(errors),
        total_quantity=total_qty,
        errors=errors,
        uploaded_by=user if getattr(user, "is_authenticated", False) else None,
    )

    logger.info(
        "bulk_upload.completed",
        extra={
            "upload_id": upload.pk,
            "warehouse": warehouse.code,
            "success_rows": success,
            "failed_rows": len(errors),
        },
    )
    return upload
