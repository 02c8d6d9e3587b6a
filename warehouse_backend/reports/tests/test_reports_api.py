# reports/tests/test_reports_api.py

from decimal import Decimal

from django.test import TestCase
from rest_framework.test import APIClient

from dispatches.services import create_dispatch
from orders.models import Order
from permissions.roles import CAP_INVENTORY_VIEW, CAP_REPORTS_VIEW
from permissions.tests.helpers import make_user
from products.models import LedgerEntry
from products.tests.helpers import add_batch, make_product, make_warehouse
from returns.models import Return
from returns.services import create_return

URL = "/api/reports/"


class ReportApiTests(TestCase):
    """
    GUARANTEES:
    - dashboard counts follow the batches, dispatches, returns and orders in the db
    - warehouse volume splits stock and movements per location
    - only good returns count as restocked
    - every report needs reports.view
    """

    def setUp(self):
        self.client = APIClient()
        self.user = make_user(capabilities=[CAP_REPORTS_VIEW])
        self.client.force_authenticate(self.user)

        self.wh1 = make_warehouse("BLR_WH")
        self.wh2 = make_warehouse("GGM_WH")
        self.bottle = make_product("8900001", "Steel Bottle", "1L")
        add_batch(self.bottle, self.wh1, 10, age_minutes=30)
        add_batch(self.bottle, self.wh2, 3, age_minutes=30)

        create_dispatch(
            warehouse=self.wh1,
            items=[{"barcode": "8900001", "qty": 4}],
            order_ref="ORD-1",
            awb="AWB1",
            customer="Asha Traders",
            invoice_amount=Decimal("250.00"),
            user=self.user,
        )
        create_return(product=self.bottle, warehouse=self.wh1, quantity=1, awb="AWB9", user=self.user)
        create_return(
            product=self.bottle,
            warehouse=self.wh2,
            quantity=2,
            condition=Return.Condition.DAMAGED,
            user=self.user,
        )
        Order.objects.create(
            customer="Asha Traders", product_name="Steel Bottle", quantity=1, warehouse=self.wh1, order_ref="ORD-1"
        )

    def test_dashboard(self):
        res = self.client.get(f"{URL}dashboard/")
        self.assertEqual(res.status_code, 200)
        data = res.data
        self.assertEqual(data["stock"]["total_units"], 10)
        self.assertEqual(data["products"], 1)
        self.assertEqual(data["warehouses"], 2)
        self.assertEqual(data["dispatches"], {"today": 1, "today_amount": "250.00", "pending": 1})
        self.assertEqual(data["returns_30d"], {"count": 2, "quantity": 3, "restocked": 1})
        self.assertEqual(data["damages_30d"]["count"], 0)
        self.assertEqual(data["orders"]["active"], 1)
        self.assertEqual(data["orders"]["pending"], 1)

    def test_warehouse_volume(self):
        res = self.client.get(f"{URL}warehouse-volume/")
        self.assertEqual(res.status_code, 200)
        rows = {row["warehouse"]: row for row in res.data["results"]}
        self.assertEqual(rows["BLR_WH"]["stock_units"], 7)
        self.assertEqual(rows["BLR_WH"]["dispatch_count"], 1)
        self.assertEqual(rows["BLR_WH"]["dispatched_qty"], 4)
        self.assertEqual(rows["BLR_WH"]["returned_qty"], 1)
        self.assertEqual(rows["GGM_WH"]["stock_units"], 3)
        self.assertEqual(rows["GGM_WH"]["returned_qty"], 0)

    def test_activity(self):
        res = self.client.get(f"{URL}activity/", {"limit": 2})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(len(res.data["results"]), 2)
        self.assertEqual(res.data["results"][0]["movement_type"], LedgerEntry.MovementType.RETURN)

        res = self.client.get(f"{URL}activity/", {"warehouse": "GGM_WH"})
        self.assertEqual([row["warehouse"] for row in res.data["results"]], ["GGM_WH"])

        res = self.client.get(f"{URL}activity/", {"limit": "x"})
        self.assertEqual(res.status_code, 400)

    def test_dispatch_heatmap(self):
        res = self.client.get(f"{URL}dispatch-heatmap/", {"days": 7})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(len(res.data["grid"]), 7)
        self.assertEqual(len(res.data["grid"][0]), 24)
        self.assertEqual(res.data["total"], 1)
        self.assertEqual(res.data["period_days"], 7)

    def test_global_search(self):
        res = self.client.get(f"{URL}search/", {"q": "asha"})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(len(res.data["results"]["dispatches"]), 1)
        self.assertEqual(len(res.data["results"]["orders"]), 1)
        self.assertEqual(res.data["results"]["products"], [])

        res = self.client.get(f"{URL}search/", {"q": "8900001", "type": "returns"})
        self.assertEqual(list(res.data["results"]), ["returns"])
        self.assertEqual(res.data["total"], 2)

        res = self.client.get(f"{URL}search/", {"q": "a"})
        self.assertEqual(res.status_code, 400)
        res = self.client.get(f"{URL}search/", {"q": "asha", "type": "users"})
        self.assertEqual(res.status_code, 400)

    def test_requires_reports_capability(self):
        self.client.force_authenticate(make_user())
        for path in ("dashboard/", "warehouse-volume/", "activity/", "dispatch-heatmap/", "search/?q=asha"):
            res = self.client.get(f"{URL}{path}")
            self.assertEqual(res.status_code, 403, path)

    def test_activity_accepts_inventory_view(self):
        self.client.force_authenticate(make_user(capabilities=[CAP_INVENTORY_VIEW]))
        self.assertEqual(self.client.get(f"{URL}activity/").status_code, 200)
        self.assertEqual(self.client.get(f"{URL}dashboard/").status_code, 403)
