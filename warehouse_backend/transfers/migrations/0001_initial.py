import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("products", "0001_initial"),
        ("warehouses", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="SelfTransfer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("reference", models.CharField(max_length=255, unique=True)),
                (
                    "transfer_type",
                    models.CharField(
                        choices=[
                            ("W to W", "Warehouse to Warehouse"),
                            ("W to S", "Warehouse to Store"),
                            ("S to W", "Store to Warehouse"),
                            ("S to S", "Store to Store"),
                        ],
                        default="W to W",
                        max_length=10,
                    ),
                ),
                ("order_ref", models.CharField(db_index=True, max_length=100)),
                ("awb", models.CharField(blank=True, max_length=100)),
                ("logistics", models.CharField(blank=True, max_length=100)),
                ("payment_mode", models.CharField(blank=True, max_length=50)),
                ("executive", models.CharField(blank=True, max_length=100)),
                ("invoice_amount", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("weight", models.DecimalField(blank=True, decimal_places=3, max_digits=10, null=True)),
                ("dimensions", models.CharField(blank=True, max_length=100)),
                ("remarks", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="self_transfers",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "destination",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transfers_in",
                        to="warehouses.warehouse",
                    ),
                ),
                (
                    "source",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transfers_out",
                        to="warehouses.warehouse",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("source", models.F("destination")), _negated=True),
                        name="chk_transfer_distinct_locations",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="SelfTransferItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("product_name", models.CharField(max_length=255)),
                ("barcode", models.CharField(db_index=True, max_length=128)),
                ("qty", models.PositiveIntegerField()),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transfer_items",
                        to="products.product",
                    ),
                ),
                (
                    "transfer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="transfers.selftransfer",
                    ),
                ),
            ],
            options={
                "ordering": ["id"],
            },
        ),
    ]
