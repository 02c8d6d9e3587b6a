# products/tests/test_timeline.py

from django.test import TestCase
from rest_framework.test import APIClient

from permissions.roles import CAP_INVENTORY_VIEW
from permissions.tests.helpers import make_user
from products.models import LedgerEntry
from products.services.stock_fifo import deduct_stock_fifo
from products.tests.helpers import add_batch, make_product, make_warehouse


class ProductTimelineTests(TestCase):
    """
    Ledger replay.

    GUARANTEES:
    - Only the first OPENING per barcode+warehouse counts
    - balance_after is a running balance replayed oldest first
    - Timeline is returned newest first
    """

    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(make_user(capabilities=[CAP_INVENTORY_VIEW]))

        self.wh = make_warehouse("WH1")
        self.product = make_product("8900001")
        add_batch(self.product, self.wh, 5)
        add_batch(self.product, self.wh, 8)  # duplicate OPENING
        add_batch(self.product, self.wh, 4, source_type="BULK_UPLOAD")
        deduct_stock_fifo(
            product=self.product,
            warehouse=self.wh,
            quantity=3,
            movement_type=LedgerEntry.MovementType.DISPATCH,
            reference="DISPATCH_1_AWB1",
        )

    def test_replays_with_single_opening(self):
        res = self.client.get("/api/products/timeline/8900001/")
        self.assertEqual(res.status_code, 200)

        timeline = res.data["timeline"]
        self.assertEqual([row["type"] for row in timeline], ["DISPATCH", "BULK_UPLOAD", "OPENING"])
        self.assertEqual([row["balance_after"] for row in timeline], [6, 9, 5])
        self.assertEqual(timeline[0]["description"], "Dispatched 3 units")

        summary = res.data["summary"]
        self.assertEqual(summary["opening_stock"], 5)
        self.assertEqual(summary["total_in"], 4)
        self.assertEqual(summary["total_out"], 3)
        self.assertEqual(summary["net_movement"], 1)
        self.assertEqual(summary["current_stock"], 6)
        self.assertEqual(summary["breakdown"]["dispatch"], 3)

    def test_warehouse_filter(self):
        res = self.client.get("/api/products/timeline/8900001/", {"warehouse": "OTHER"})
        self.assertEqual(res.data["timeline"], [])

        res = self.client.get("/api/products/timeline/8900001/", {"warehouse": "ALL"})
        self.assertEqual(len(res.data["timeline"]), 3)

    def test_limit_keeps_newest_rows_and_full_history_summary(self):
        res = self.client.get("/api/products/timeline/8900001/", {"limit": "2"})
        self.assertEqual(res.status_code, 200)

        timeline = res.data["timeline"]
        self.assertEqual([row["type"] for row in timeline], ["DISPATCH", "BULK_UPLOAD"])
        self.assertEqual([row["balance_after"] for row in timeline], [6, 9])

        summary = res.data["summary"]
        self.assertEqual(summary["opening_stock"], 5)
        self.assertEqual(summary["total_in"], 4)
        self.assertEqual(summary["total_out"], 3)
        self.assertEqual(summary["current_stock"], 6)

    def test_bad_limit_is_400(self):
        res = self.client.get("/api/products/timeline/8900001/", {"limit": "-1"})
        self.assertEqual(res.status_code, 400)

    def test_summary_per_barcode(self):
        res = self.client.get("/api/products/timeline/")
        self.assertEqual(res.status_code, 200)
        row = res.data["results"][0]
        self.assertEqual(row["barcode"], "8900001")
        self.assertEqual(row["total_movements"], 4)
        self.assertEqual(row["total_in"], 17)
        self.assertEqual(row["total_out"], 3)
        self.assertEqual(row["net_movement"], 14)
