# dispatches/tests/test_dispatch_api.py

from django.test import TestCase
from rest_framework.test import APIClient

from damages.models import DamageRecoveryLog
from dispatches.models import Dispatch
from permissions.roles import (
    CAP_DISPATCH_CREATE,
    CAP_DISPATCH_DELETE,
    CAP_DISPATCH_EDIT,
    CAP_DISPATCH_VIEW,
)
from permissions.tests.helpers import make_user
from products.models import LedgerEntry, StockBatch
from products.tests.helpers import add_batch, make_product, make_warehouse

URL = "/api/dispatches/"


class DispatchCreateTests(TestCase):
    """
    POST /api/dispatches/

    GUARANTEES:
    - Availability is checked for every line before anything is written
    - One DISPATCH ledger row per product, reference DISPATCH_<id>_<awb>
    - Oldest batches are consumed first
    """

    def setUp(self):
        self.client = APIClient()
        self.user = make_user(
            capabilities=[CAP_DISPATCH_VIEW, CAP_DISPATCH_CREATE, CAP_DISPATCH_EDIT, CAP_DISPATCH_DELETE]
        )
        self.client.force_authenticate(self.user)
        self.wh = make_warehouse("WH1")
        self.bottle = make_product("8900001", "Steel Bottle", "1L")
        self.mug = make_product("8900002", "Mug", "Blue")
        self.old = add_batch(self.bottle, self.wh, 5, age_minutes=30)
        self.new = add_batch(self.bottle, self.wh, 10, age_minutes=5)
        add_batch(self.mug, self.wh, 4)

    def test_creates_dispatch_and_deducts_fifo(self):
        res = self.client.post(
            URL,
            {
                "warehouse": "WH1",
                "order_ref": "ORD-1",
                "awb": "AWB123",
                "payment_mode": "COD",
                "items": [{"barcode": "8900001", "qty": 7}, {"barcode": "8900002", "qty": 2}],
            },
            format="json",
        )

        self.assertEqual(res.status_code, 201, res.data)
        dispatch = Dispatch.objects.get(pk=res.data["id"])
        self.assertEqual(dispatch.status, Dispatch.Status.PENDING)
        self.assertEqual(dispatch.parcel_type, "Forward")
        self.assertEqual(res.data["total_qty"], 9)
        self.assertEqual(res.data["reference"], f"DISPATCH_{dispatch.pk}_AWB123")

        self.old.refresh_from_db()
        self.new.refresh_from_db()
        self.assertEqual(self.old.qty_available, 0)
        self.assertEqual(self.old.status, StockBatch.Status.EXHAUSTED)
        self.assertEqual(self.new.qty_available, 8)

        rows = LedgerEntry.objects.filter(movement_type=LedgerEntry.MovementType.DISPATCH)
        self.assertEqual(rows.count(), 2)
        self.assertEqual({r.reference for r in rows}, {dispatch.reference})
        self.assertTrue(all(r.direction == LedgerEntry.Direction.OUT for r in rows))

    def test_repeated_product_lines_share_one_ledger_row(self):
        res = self.client.post(
            URL,
            {
                "warehouse": "WH1",
                "items": [{"barcode": "8900001", "qty": 3}, {"barcode": "8900001", "qty": 4}],
            },
            format="json",
        )

        self.assertEqual(res.status_code, 201, res.data)
        entry = LedgerEntry.objects.get(movement_type=LedgerEntry.MovementType.DISPATCH)
        self.assertEqual(entry.qty, 7)
        self.assertTrue(entry.reference.endswith("_NO_AWB"))

    def test_single_line_label_format(self):
        res = self.client.post(
            URL,
            {"warehouse": "WH1", "product": "Mug | Blue | 8900002", "qty": 3},
            format="json",
        )

        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(self.mug.stock_at(self.wh), 1)

    def test_shortage_on_any_line_writes_nothing(self):
        res = self.client.post(
            URL,
            {
                "warehouse": "WH1",
                "items": [{"barcode": "8900001", "qty": 2}, {"barcode": "8900002", "qty": 50}],
            },
            format="json",
        )

        self.assertEqual(res.status_code, 400)
        self.assertIn("Insufficient stock", res.data["detail"])
        self.assertEqual(len(res.data["shortages"]), 1)
        self.assertFalse(Dispatch.objects.exists())
        self.assertEqual(self.bottle.stock_at(self.wh), 15)
        self.assertFalse(LedgerEntry.objects.filter(movement_type=LedgerEntry.MovementType.DISPATCH).exists())

    def test_unknown_warehouse_or_product_is_400(self):
        res = self.client.post(URL, {"warehouse": "NOPE", "items": [{"barcode": "8900001", "qty": 1}]}, format="json")
        self.assertEqual(res.status_code, 400)

        res = self.client.post(URL, {"warehouse": "WH1", "items": [{"barcode": "missing", "qty": 1}]}, format="json")
        self.assertEqual(res.status_code, 400)

    def test_requires_create_capability(self):
        viewer = make_user(capabilities=[CAP_DISPATCH_VIEW])
        client = APIClient()
        client.force_authenticate(viewer)
        res = client.post(URL, {"warehouse": "WH1", "items": [{"barcode": "8900001", "qty": 1}]}, format="json")
        self.assertEqual(res.status_code, 403)


class DispatchLifecycleTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = make_user(
            capabilities=[CAP_DISPATCH_VIEW, CAP_DISPATCH_CREATE, CAP_DISPATCH_EDIT, CAP_DISPATCH_DELETE]
        )
        self.client.force_authenticate(self.user)
        self.wh = make_warehouse("WH1")
        self.other_wh = make_warehouse("WH2")
        self.bottle = make_product("8900001", "Steel Bottle", "1L")
        self.old = add_batch(self.bottle, self.wh, 5, age_minutes=30)
        self.new = add_batch(self.bottle, self.wh, 10, age_minutes=5)

        res = self.client.post(
            URL,
            {"warehouse": "WH1", "awb": "AWB9", "items": [{"barcode": "8900001", "qty": 8}]},
            format="json",
        )
        self.dispatch_id = res.data["id"]

    def test_delete_restores_lifo_and_removes_dispatch(self):
        res = self.client.delete(f"{URL}{self.dispatch_id}/")

        self.assertEqual(res.status_code, 200, res.data)
        self.assertFalse(Dispatch.objects.filter(pk=self.dispatch_id).exists())
        self.assertEqual(self.bottle.stock_at(self.wh), 15)

        self.old.refresh_from_db()
        self.new.refresh_from_db()
        self.assertEqual(self.new.qty_available, 10)
        self.assertEqual(self.old.qty_available, 5)

        entry = LedgerEntry.objects.get(movement_type=LedgerEntry.MovementType.DISPATCH_REVERSAL)
        self.assertEqual(entry.reference, f"DISPATCH_DELETE_{self.dispatch_id}")
        self.assertEqual(entry.qty, 8)
        self.assertEqual(entry.direction, LedgerEntry.Direction.IN)

    def test_status_update(self):
        res = self.client.patch(
            f"{URL}{self.dispatch_id}/status/",
            {"status": "dispatched", "processed_by": "Ravi"},
            format="json",
        )

        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["status"], "dispatched")
        self.assertEqual(res.data["processed_by"], "Ravi")

        res = self.client.patch(f"{URL}{self.dispatch_id}/status/", {"status": "lost"}, format="json")
        self.assertEqual(res.status_code, 400)

    def test_dispatch_damage_deducts_and_links(self):
        res = self.client.post(
            f"{URL}{self.dispatch_id}/damage/",
            {"barcode": "8900001", "quantity": 2, "reason": "crushed"},
            format="json",
        )

        self.assertEqual(res.status_code, 201, res.data)
        log = DamageRecoveryLog.objects.get()
        self.assertEqual(log.dispatch_id, self.dispatch_id)
        self.assertEqual(res.data["ledger"]["reference"], f"dispatch_damage#{log.pk}")
        self.assertEqual(res.data["ledger"]["movement_type"], LedgerEntry.MovementType.DISPATCH_DAMAGE)
        self.assertEqual(self.bottle.stock_at(self.wh), 5)

    def test_damage_log_keeps_its_ledger_reference_after_dispatch_delete(self):
        self.client.post(f"{URL}{self.dispatch_id}/damage/", {"barcode": "8900001", "quantity": 2}, format="json")
        log = DamageRecoveryLog.objects.get()

        res = self.client.delete(f"{URL}{self.dispatch_id}/")
        self.assertEqual(res.status_code, 200, res.data)

        log.refresh_from_db()
        self.assertIsNone(log.dispatch_id)
        self.assertEqual(log.reference, f"dispatch_damage#{log.pk}")
        entry = LedgerEntry.objects.get(reference=log.reference)
        self.assertEqual(entry.movement_type, LedgerEntry.MovementType.DISPATCH_DAMAGE)
        self.assertEqual(entry.qty, 2)

    def test_damage_for_product_outside_dispatch_is_rejected(self):
        make_product("8900009", "Other", "")
        res = self.client.post(
            f"{URL}{self.dispatch_id}/damage/", {"barcode": "8900009", "quantity": 1}, format="json"
        )
        self.assertEqual(res.status_code, 400)

    def test_timeline_lists_dispatch_damage_and_ledger(self):
        self.client.post(f"{URL}{self.dispatch_id}/damage/", {"barcode": "8900001", "quantity": 1}, format="json")

        res = self.client.get(f"{URL}{self.dispatch_id}/timeline/")

        self.assertEqual(res.status_code, 200)
        types = [e["type"] for e in res.data["events"]]
        self.assertIn("DISPATCH_CREATED", types)
        self.assertIn("DISPATCH_DAMAGE", types)
        self.assertIn("LEDGER_DISPATCH", types)
        self.assertIn("LEDGER_DISPATCH_DAMAGE", types)

    def test_list_filters_and_stats(self):
        res = self.client.get(URL, {"warehouse": "WH1", "search": "AWB9"})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["count"], 1)

        res = self.client.get(URL, {"warehouse": "WH2"})
        self.assertEqual(res.data["count"], 0)

        res = self.client.get(URL, {"date_from": "not-a-date"})
        self.assertEqual(res.status_code, 400)

        res = self.client.get(f"{URL}stats/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["totals"]["count"], 1)
        self.assertEqual(res.data["totals"]["qty"], 8)
        self.assertEqual(res.data["results"][0]["pending"], 1)

    def test_check_inventory_and_helpers(self):
        res = self.client.get(f"{URL}check-inventory/", {"warehouse": "WH1", "barcode": "8900001", "qty": 9})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["available"], 7)
        self.assertFalse(res.data["ok"])

        res = self.client.get(f"{URL}payment-modes/")
        self.assertIn("COD", res.data["results"])

        res = self.client.get(f"{URL}product-suggestions/", {"q": "ste"})
        self.assertEqual(res.data["results"][0]["barcode"], "8900001")
