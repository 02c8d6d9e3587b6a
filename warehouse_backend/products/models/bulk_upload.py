# products/models/bulk_upload.py

from django.conf import settings
from django.db import models

from warehouses.models import Warehouse


class BulkUpload(models.Model):
    """
    One CSV stock upload into a single warehouse.

    Each valid row became a BULK_UPLOAD stock entry (batch + ledger IN);
    invalid rows are kept in `errors` as [{"row": n, "error": "..."}].
    """

    file_name = models.CharField(max_length=255)
    warehouse = models.ForeignKey(
        Warehouse, on_delete=models.PROTECT, related_name="bulk_uploads"
    )

    total_rows = models.PositiveIntegerField(default=0)
    success_rows = models.PositiveIntegerField(default=0)
    failed_rows = models.PositiveIntegerField(default=0)
    total_quantity = models.PositiveIntegerField(default=0)
    errors = models.JSONField(default=list, blank=True)

    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bulk_uploads",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.file_name} -> {self.warehouse_id} ({self.success_rows}/{self.total_rows})"
