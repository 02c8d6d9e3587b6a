import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("warehouses", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Category",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255, unique=True)),
                ("description", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["name"],
                "verbose_name_plural": "categories",
            },
        ),
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("barcode", models.CharField(max_length=128, unique=True)),
                ("name", models.CharField(db_index=True, max_length=255)),
                ("variant", models.CharField(blank=True, max_length=255)),
                ("description", models.TextField(blank=True)),
                ("price", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("cost_price", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("weight", models.DecimalField(blank=True, decimal_places=3, max_digits=10, null=True)),
                ("dimensions", models.CharField(blank=True, max_length=100)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "category",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="products",
                        to="products.category",
                    ),
                ),
            ],
            options={
                "ordering": ["name", "variant"],
                "indexes": [models.Index(fields=["name", "variant"], name="product_name_variant_idx")],
            },
        ),
        migrations.CreateModel(
            name="StockBatch",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "source_type",
                    models.CharField(
                        choices=[
                            ("OPENING", "Opening Stock"),
                            ("PURCHASE", "Purchase"),
                            ("BULK_UPLOAD", "Bulk Upload"),
                            ("ADJUSTMENT", "Manual Adjustment"),
                            ("RETURN", "Customer Return"),
                            ("RECOVER", "Damage Recovery"),
                            ("SELF_TRANSFER", "Self Transfer In"),
                            ("DISPATCH_REVERSAL", "Dispatch Reversal"),
                        ],
                        max_length=32,
                    ),
                ),
                (
                    "source_ref",
                    models.CharField(
                        blank=True,
                        help_text="Reference of the event that created this lot (ledger reference).",
                        max_length=255,
                    ),
                ),
                ("qty_initial", models.PositiveIntegerField(help_text="Quantity received into this lot (immutable)")),
                ("qty_available", models.PositiveIntegerField(help_text="Remaining quantity (service-managed only)")),
                ("unit_cost", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("exhausted", "Exhausted")],
                        default="active",
                        max_length=16,
                    ),
                ),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_batches",
                        to="products.product",
                    ),
                ),
                (
                    "warehouse",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_batches",
                        to="warehouses.warehouse",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(fields=["product", "warehouse", "status", "created_at"], name="batch_fifo_idx"),
                    models.Index(fields=["warehouse", "created_at"], name="batch_wh_created_idx"),
                    models.Index(fields=["source_type"], name="batch_source_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("qty_initial__gt", 0)),
                        name="chk_batch_qty_initial_gt_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("qty_available__gte", 0)),
                        name="chk_batch_qty_available_gte_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("qty_available__lte", models.F("qty_initial"))),
                        name="chk_batch_available_lte_initial",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="LedgerEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("event_time", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                (
                    "movement_type",
                    models.CharField(
                        choices=[
                            ("OPENING", "Opening Stock"),
                            ("PURCHASE", "Purchase"),
                            ("BULK_UPLOAD", "Bulk Upload"),
                            ("ADJUSTMENT", "Manual Adjustment"),
                            ("DISPATCH", "Dispatch"),
                            ("DISPATCH_REVERSAL", "Dispatch Reversal"),
                            ("DISPATCH_DAMAGE", "Dispatch Damage"),
                            ("DAMAGE", "Damage"),
                            ("RECOVER", "Recovery"),
                            ("RETURN", "Return"),
                            ("SELF_TRANSFER", "Self Transfer"),
                        ],
                        max_length=32,
                    ),
                ),
                ("direction", models.CharField(choices=[("IN", "Stock In"), ("OUT", "Stock Out")], max_length=3)),
                ("barcode", models.CharField(db_index=True, max_length=128)),
                ("product_name", models.CharField(max_length=255)),
                ("location_code", models.CharField(db_index=True, max_length=50)),
                ("qty", models.PositiveIntegerField()),
                ("reference", models.CharField(db_index=True, max_length=255)),
                (
                    "performed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="ledger_entries",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="ledger_entries",
                        to="products.product",
                    ),
                ),
                (
                    "warehouse",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="ledger_entries",
                        to="warehouses.warehouse",
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "ledger entries",
                "ordering": ["event_time", "id"],
                "indexes": [
                    models.Index(fields=["barcode", "location_code", "event_time"], name="ledger_timeline_idx"),
                    models.Index(fields=["movement_type", "event_time"], name="ledger_type_idx"),
                    models.Index(fields=["product", "warehouse", "event_time"], name="ledger_product_wh_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="BulkUpload",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("file_name", models.CharField(max_length=255)),
                ("total_rows", models.PositiveIntegerField(default=0)),
                ("success_rows", models.PositiveIntegerField(default=0)),
                ("failed_rows", models.PositiveIntegerField(default=0)),
                ("total_quantity", models.PositiveIntegerField(default=0)),
                ("errors", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "uploaded_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="bulk_uploads",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "warehouse",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bulk_uploads",
                        to="warehouses.warehouse",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
    ]
