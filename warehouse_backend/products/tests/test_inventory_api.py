# products/tests/test_inventory_api.py

import csv
import io

from django.test import TestCase
from rest_framework.test import APIClient

from permissions.roles import CAP_INVENTORY_EDIT, CAP_INVENTORY_VIEW
from permissions.tests.helpers import make_user
from products.models import LedgerEntry, Product, StockBatch
from products.services.stock_fifo import deduct_stock_fifo
from products.tests.helpers import add_batch, make_product, make_warehouse


class AddStockApiTests(TestCase):
    """
    POST /api/products/inventory/add-stock/

    GUARANTEES:
    - Each entry opens its own batch and writes one IN ledger row
    - Unknown barcode + product_name creates the product
    - Writers need inventory.edit
    """

    url = "/api/products/inventory/add-stock/"

    def setUp(self):
        self.client = APIClient()
        self.user = make_user(capabilities=[CAP_INVENTORY_VIEW, CAP_INVENTORY_EDIT])
        self.client.force_authenticate(self.user)
        self.wh = make_warehouse("WH1")
        self.product = make_product("8900001", "Steel Bottle", "1L")

    def test_adds_stock_to_existing_product(self):
        res = self.client.post(
            self.url, {"warehouse": "wh1", "barcode": "8900001", "qty": 12}, format="json"
        )

        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["stock"], 12)
        self.assertTrue(res.data["reference"].startswith("OPENING_8900001_"))

        batch = StockBatch.objects.get(product=self.product)
        self.assertEqual(batch.qty_initial, 12)
        self.assertEqual(batch.source_type, StockBatch.SourceType.OPENING)

        entry = LedgerEntry.objects.get(product=self.product)
        self.assertEqual(entry.direction, LedgerEntry.Direction.IN)
        self.assertEqual(entry.performed_by, self.user)

    def test_each_entry_is_its_own_batch(self):
        for _ in range(2):
            self.client.post(
                self.url,
                {"warehouse": "WH1", "barcode": "8900001", "qty": 3, "source_type": "PURCHASE"},
                format="json",
            )
        self.assertEqual(StockBatch.objects.filter(product=self.product).count(), 2)
        self.assertEqual(self.product.stock_at(self.wh), 6)

    def test_accepts_dropdown_label(self):
        res = self.client.post(
            self.url,
            {"warehouse": "WH1", "product": "Steel Bottle | 1L | 8900001", "qty": 2},
            format="json",
        )
        self.assertEqual(res.status_code, 201, res.data)

    def test_unknown_barcode_with_name_creates_product(self):
        res = self.client.post(
            self.url,
            {"warehouse": "WH1", "barcode": "NEW-1", "product_name": "Lunch Box", "qty": 4},
            format="json",
        )
        self.assertEqual(res.status_code, 201, res.data)
        self.assertTrue(Product.objects.filter(barcode="NEW-1", name="Lunch Box").exists())

    def test_unknown_barcode_without_name_is_rejected(self):
        res = self.client.post(self.url, {"warehouse": "WH1", "barcode": "NOPE", "qty": 4}, format="json")
        self.assertEqual(res.status_code, 400)
        self.assertFalse(StockBatch.objects.exists())

    def test_unknown_warehouse_is_rejected(self):
        res = self.client.post(self.url, {"warehouse": "XX", "barcode": "8900001", "qty": 4}, format="json")
        self.assertEqual(res.status_code, 400)

    def test_non_entry_source_is_rejected(self):
        res = self.client.post(
            self.url,
            {"warehouse": "WH1", "barcode": "8900001", "qty": 4, "source_type": "RETURN"},
            format="json",
        )
        self.assertEqual(res.status_code, 400)

    def test_viewer_cannot_add_stock(self):
        viewer = make_user(capabilities=[CAP_INVENTORY_VIEW])
        self.client.force_authenticate(viewer)
        res = self.client.post(self.url, {"warehouse": "WH1", "barcode": "8900001", "qty": 1}, format="json")
        self.assertEqual(res.status_code, 403)


class InventoryListApiTests(TestCase):
    """
    Grouped inventory (product+warehouse), LOW_STOCK_THRESHOLD = 10 in test settings.
    """

    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(make_user(capabilities=[CAP_INVENTORY_VIEW]))

        self.wh1 = make_warehouse("WH1")
        self.wh2 = make_warehouse("WH2")
        self.alpha = make_product("A1", "Alpha", "")
        self.beta = make_product("B1", "Beta", "")
        self.gamma = make_product("C1", "Gamma", "")

        add_batch(self.alpha, self.wh1, 5, age_minutes=20)
        add_batch(self.alpha, self.wh1, 20, age_minutes=10)
        add_batch(self.beta, self.wh1, 4)
        add_batch(self.gamma, self.wh2, 3)
        deduct_stock_fifo(
            product=self.gamma,
            warehouse=self.wh2,
            quantity=3,
            movement_type=LedgerEntry.MovementType.DAMAGE,
            reference="damage#1",
        )

    def test_groups_batches_per_product_and_warehouse(self):
        res = self.client.get("/api/products/inventory/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["count"], 3)

        alpha = next(r for r in res.data["results"] if r["barcode"] == "A1")
        self.assertEqual(alpha["stock"], 25)
        self.assertEqual(alpha["batch_count"], 2)
        self.assertEqual(alpha["stock_status"], "in-stock")

        self.assertEqual(
            res.data["stats"],
            {"total_products": 3, "total_stock": 29, "low_stock": 1, "out_of_stock": 1, "threshold": 10},
        )

    def test_stock_filters(self):
        low = self.client.get("/api/products/inventory/", {"stock_filter": "low-stock"})
        self.assertEqual([r["barcode"] for r in low.data["results"]], ["B1"])

        out = self.client.get("/api/products/inventory/", {"stock_filter": "out-of-stock"})
        self.assertEqual([r["barcode"] for r in out.data["results"]], ["C1"])

        ins = self.client.get("/api/products/inventory/", {"stock_filter": "in-stock"})
        self.assertEqual([r["barcode"] for r in ins.data["results"]], ["A1"])

    def test_sort_and_search(self):
        res = self.client.get("/api/products/inventory/", {"sort_by": "stock", "sort_order": "asc"})
        self.assertEqual([r["barcode"] for r in res.data["results"]], ["C1", "B1", "A1"])

        res = self.client.get("/api/products/inventory/", {"search": "bet"})
        self.assertEqual([r["barcode"] for r in res.data["results"]], ["B1"])

    def test_bad_filter_values_are_400(self):
        self.assertEqual(self.client.get("/api/products/inventory/", {"stock_filter": "lots"}).status_code, 400)
        self.assertEqual(self.client.get("/api/products/inventory/", {"date_from": "yesterday"}).status_code, 400)
        self.assertEqual(self.client.get("/api/products/inventory/", {"sort_by": "price"}).status_code, 400)

    def test_by_warehouse(self):
        res = self.client.get("/api/products/inventory/by-warehouse/WH2/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual([r["barcode"] for r in res.data["results"]], ["C1"])

        self.assertEqual(self.client.get("/api/products/inventory/by-warehouse/NOPE/").status_code, 404)

    def test_csv_export(self):
        res = self.client.get("/api/products/inventory/export/", {"warehouse": "WH1"})
        self.assertEqual(res.status_code, 200)
        self.assertTrue(res["Content-Type"].startswith("text/csv"))

        rows = list(csv.reader(io.StringIO(res.content.decode())))
        self.assertEqual(rows[0][:3], ["barcode", "product_name", "variant"])
        self.assertEqual(sorted(r[0] for r in rows[1:]), ["A1", "B1"])

    def test_low_stock_includes_out_of_stock(self):
        res = self.client.get("/api/products/inventory/low-stock/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual([r["barcode"] for r in res.data["results"]], ["C1", "B1"])

    def test_product_tracking(self):
        res = self.client.get("/api/products/inventory/A1/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["total_stock"], 25)
        self.assertEqual(len(res.data["warehouses"]), 1)
        self.assertEqual(len(res.data["warehouses"][0]["batches"]), 2)

        self.assertEqual(self.client.get("/api/products/inventory/ZZZ/").status_code, 404)

    def test_requires_inventory_view(self):
        self.client.force_authenticate(make_user())
        self.assertEqual(self.client.get("/api/products/inventory/").status_code, 403)


class ProductApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(make_user(capabilities=[CAP_INVENTORY_VIEW, CAP_INVENTORY_EDIT]))
        self.wh = make_warehouse("WH1")
        self.product = make_product("8900001", "Steel Bottle", "1L")
        add_batch(self.product, self.wh, 7)

    def test_list_annotates_stock(self):
        res = self.client.get("/api/products/products/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["results"][0]["total_stock"], 7)
        self.assertEqual(res.data["results"][0]["label"], "Steel Bottle | 1L | 8900001")

    def test_duplicate_barcode_rejected(self):
        res = self.client.post("/api/products/products/", {"barcode": "8900001", "name": "Other"}, format="json")
        self.assertEqual(res.status_code, 400)

    def test_delete_is_soft(self):
        res = self.client.delete(f"/api/products/products/{self.product.id}/")
        self.assertEqual(res.status_code, 204)

        self.product.refresh_from_db()
        self.assertFalse(self.product.is_active)
        self.assertEqual(self.client.get("/api/products/products/").data["count"], 0)

    def test_suggestions_need_two_characters(self):
        self.assertEqual(self.client.get("/api/products/products/suggestions/", {"q": "s"}).data["results"], [])
        res = self.client.get("/api/products/products/suggestions/", {"q": "st"})
        self.assertEqual(res.data["results"][0]["barcode"], "8900001")

    def test_lookup_by_barcode(self):
        res = self.client.get("/api/products/products/barcode/8900001/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["name"], "Steel Bottle")
