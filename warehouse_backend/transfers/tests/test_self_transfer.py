# transfers/tests/test_self_transfer.py

from unittest.mock import patch

from django.test import TestCase
from rest_framework.test import APIClient

from permissions.roles import CAP_TRANSFERS_CREATE, CAP_TRANSFERS_VIEW
from permissions.tests.helpers import make_user
from products.models import LedgerEntry, StockBatch
from products.tests.helpers import add_batch, make_product, make_warehouse
from transfers.models import SelfTransfer
from transfers.services import create_self_transfer
from warehouses.models import Warehouse

URL = "/api/self-transfer/"


class SelfTransferCreateTests(TestCase):
    """
    POST /api/self-transfer/

    GUARANTEES:
    - FIFO out of the source, one new SELF_TRANSFER batch at the destination
    - OUT and IN ledger rows share SELF_TRANSFER_<order_ref>_<ms>
    - a short item aborts the whole transfer
    """

    def setUp(self):
        self.client = APIClient()
        self.user = make_user(capabilities=[CAP_TRANSFERS_VIEW, CAP_TRANSFERS_CREATE])
        self.client.force_authenticate(self.user)
        self.src = make_warehouse("WH1")
        self.dst = Warehouse.objects.create(code="ST1", name="Store 1", kind=Warehouse.Kind.STORE)
        self.bottle = make_product("8900001", "Steel Bottle", "1L")
        self.mug = make_product("8900002", "Mug", "Blue")
        self.old = add_batch(self.bottle, self.src, 4, age_minutes=20)
        self.new = add_batch(self.bottle, self.src, 6, age_minutes=5)
        add_batch(self.mug, self.src, 2)

    def test_moves_stock_between_locations(self):
        res = self.client.post(
            URL,
            {
                "source": "WH1",
                "destination": "ST1",
                "order_ref": "TR-1",
                "items": [{"barcode": "8900001", "qty": 5}, {"barcode": "8900002", "qty": 2}],
            },
            format="json",
        )
        self.assertEqual(res.status_code, 201, res.data)
        transfer = SelfTransfer.objects.get()
        self.assertEqual(transfer.transfer_type, "W to S")
        self.assertTrue(transfer.reference.startswith("SELF_TRANSFER_TR-1_"))
        self.assertEqual(res.data["total_qty"], 7)

        self.old.refresh_from_db()
        self.new.refresh_from_db()
        self.assertEqual(self.old.qty_available, 0)
        self.assertEqual(self.new.qty_available, 5)
        self.assertEqual(self.bottle.stock_at(self.src), 5)
        self.assertEqual(self.bottle.stock_at(self.dst), 5)
        self.assertEqual(self.mug.stock_at(self.dst), 2)

        landed = StockBatch.objects.filter(warehouse=self.dst)
        self.assertEqual(landed.count(), 2)
        self.assertTrue(all(b.source_type == StockBatch.SourceType.SELF_TRANSFER for b in landed))

        rows = LedgerEntry.objects.filter(reference=transfer.reference)
        self.assertEqual(rows.count(), 4)
        self.assertEqual(
            sorted((r.location_code, r.direction) for r in rows),
            [("ST1", "IN"), ("ST1", "IN"), ("WH1", "OUT"), ("WH1", "OUT")],
        )

    def test_shortage_aborts_everything(self):
        res = self.client.post(
            URL,
            {
                "source": "WH1",
                "destination": "ST1",
                "order_ref": "TR-2",
                "items": [{"barcode": "8900001", "qty": 1}, {"barcode": "8900002", "qty": 3}],
            },
            format="json",
        )
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["shortages"][0]["barcode"], "8900002")
        self.assertFalse(SelfTransfer.objects.exists())
        self.assertEqual(self.bottle.stock_at(self.src), 10)
        self.assertFalse(LedgerEntry.objects.filter(movement_type=LedgerEntry.MovementType.SELF_TRANSFER).exists())

    def test_validation(self):
        item = [{"barcode": "8900001", "qty": 1}]
        res = self.client.post(URL, {"source": "WH1", "destination": "wh1", "order_ref": "X", "items": item}, format="json")
        self.assertEqual(res.status_code, 400)

        res = self.client.post(URL, {"source": "WH1", "destination": "ST1", "items": item}, format="json")
        self.assertEqual(res.status_code, 400)

        res = self.client.post(URL, {"source": "WH1", "destination": "ST1", "order_ref": "X"}, format="json")
        self.assertEqual(res.status_code, 400)

        res = self.client.post(URL, {"source": "WH1", "destination": "NOPE", "order_ref": "X", "items": item}, format="json")
        self.assertEqual(res.status_code, 400)

    def test_alias_route_and_field_names(self):
        res = self.client.post(
            f"{URL}create/",
            {
                "source_warehouse": "WH1",
                "destination_store": "ST1",
                "order_ref": "TR-3",
                "items": [{"barcode": "8900002", "qty": 1}],
            },
            format="json",
        )
        self.assertEqual(res.status_code, 201, res.data)

    @patch("transfers.services.epoch_millis", return_value=1717171717171)
    def test_same_order_ref_in_same_millisecond_gets_next_reference(self, _millis):
        first = create_self_transfer(
            source=self.src, destination=self.dst, order_ref="ORD1", items=[{"barcode": "8900001", "qty": 1}]
        )
        second = create_self_transfer(
            source=self.src, destination=self.dst, order_ref="ORD1", items=[{"barcode": "8900001", "qty": 1}]
        )

        self.assertEqual(first.reference, "SELF_TRANSFER_ORD1_1717171717171")
        self.assertEqual(second.reference, "SELF_TRANSFER_ORD1_1717171717172")
        self.assertEqual(LedgerEntry.objects.filter(reference=second.reference).count(), 2)

        res = self.client.post(
            URL,
            {"source": "WH1", "destination": "ST1", "order_ref": "ORD1", "items": [{"barcode": "8900001", "qty": 1}]},
            format="json",
        )
        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["reference"], "SELF_TRANSFER_ORD1_1717171717173")

    def test_view_only_user_cannot_create(self):
        self.client.force_authenticate(make_user(capabilities=[CAP_TRANSFERS_VIEW]))
        res = self.client.post(
            URL,
            {"source": "WH1", "destination": "ST1", "order_ref": "X", "items": [{"barcode": "8900001", "qty": 1}]},
            format="json",
        )
        self.assertEqual(res.status_code, 403)


class SelfTransferReadTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = make_user(capabilities=[CAP_TRANSFERS_VIEW, CAP_TRANSFERS_CREATE])
        self.client.force_authenticate(self.user)
        self.wh1 = make_warehouse("WH1")
        self.wh2 = make_warehouse("WH2")
        self.bottle = make_product("8900001", "Steel Bottle", "1L")
        add_batch(self.bottle, self.wh1, 10)

        for ref, qty in (("TR-A", 2), ("TR-B", 3)):
            res = self.client.post(
                URL,
                {"source": "WH1", "destination": "WH2", "order_ref": ref, "items": [{"barcode": "8900001", "qty": qty}]},
                format="json",
            )
            self.assertEqual(res.status_code, 201, res.data)

    def test_list_detail_statistics(self):
        res = self.client.get(URL, {"source": "WH1"})
        self.assertEqual(res.data["count"], 2)

        res = self.client.get(URL, {"destination": "WH1"})
        self.assertEqual(res.data["count"], 0)

        res = self.client.get(URL, {"search": "TR-B"})
        self.assertEqual(res.data["count"], 1)
        transfer_id = res.data["results"][0]["id"]

        res = self.client.get(f"{URL}{transfer_id}/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(len(res.data["ledger"]), 2)

        res = self.client.get(f"{URL}statistics/")
        self.assertEqual(res.data["totals"], {"count": 2, "quantity": 5})
        self.assertEqual(res.data["routes"], [{"source": "WH1", "destination": "WH2", "count": 2}])
        self.assertEqual(res.data["top_products"][0]["transfers"], 2)

    def test_warehouse_stock(self):
        res = self.client.get(f"{URL}warehouse-stock/", {"barcode": "8900001"})
        self.assertEqual(res.status_code, 200)
        stock = {row["warehouse"]: row["available"] for row in res.data["results"]}
        self.assertEqual(stock, {"WH1": 5, "WH2": 5})

        res = self.client.get(f"{URL}warehouse-stock/")
        self.assertEqual(res.status_code, 400)
