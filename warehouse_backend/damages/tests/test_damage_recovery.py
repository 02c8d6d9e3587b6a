# damages/tests/test_damage_recovery.py

from django.test import TestCase
from rest_framework.test import APIClient

from damages.models import DamageRecoveryLog
from permissions.roles import CAP_INVENTORY_ADJUST, CAP_INVENTORY_VIEW
from permissions.tests.helpers import make_user
from products.models import LedgerEntry, StockBatch
from products.tests.helpers import add_batch, make_product, make_warehouse


class DamageRecoveryApiTests(TestCase):
    """
    /api/damage-recovery/

    GUARANTEES:
    - damage: log row + FIFO deduction, ledger reference damage#<id>
    - recover: log row + new RECOVER batch, ledger reference recover#<id>
    - A damage larger than stock changes nothing
    """

    def setUp(self):
        self.client = APIClient()
        self.user = make_user(capabilities=[CAP_INVENTORY_VIEW, CAP_INVENTORY_ADJUST])
        self.client.force_authenticate(self.user)
        self.wh = make_warehouse("WH1")
        self.product = make_product("8900001", "Steel Bottle", "1L")
        self.old = add_batch(self.product, self.wh, 3, age_minutes=20)
        self.new = add_batch(self.product, self.wh, 5, age_minutes=2)

    def test_damage_deducts_oldest_first(self):
        res = self.client.post(
            "/api/damage-recovery/damage/",
            {"barcode": "8900001", "warehouse": "WH1", "quantity": 4, "reason": "water"},
            format="json",
        )

        self.assertEqual(res.status_code, 201, res.data)
        log = DamageRecoveryLog.objects.get()
        self.assertEqual(log.action_type, DamageRecoveryLog.ActionType.DAMAGE)
        self.assertEqual(res.data["ledger"]["reference"], f"damage#{log.pk}")
        self.assertEqual(res.data["available"], 4)

        self.old.refresh_from_db()
        self.new.refresh_from_db()
        self.assertEqual(self.old.qty_available, 0)
        self.assertEqual(self.new.qty_available, 4)

    def test_damage_beyond_stock_is_rolled_back(self):
        res = self.client.post(
            "/api/damage-recovery/damage/",
            {"barcode": "8900001", "inventory_location": "WH1", "quantity": 50},
            format="json",
        )

        self.assertEqual(res.status_code, 400)
        self.assertFalse(DamageRecoveryLog.objects.exists())
        self.assertEqual(self.product.stock_at(self.wh), 8)

    def test_recover_opens_new_batch(self):
        res = self.client.post(
            "/api/damage-recovery/recover/",
            {"product": "Steel Bottle | 1L | 8900001", "warehouse": "WH1", "quantity": 2},
            format="json",
        )

        self.assertEqual(res.status_code, 201, res.data)
        log = DamageRecoveryLog.objects.get()
        batch = StockBatch.objects.get(source_type=StockBatch.SourceType.RECOVER)
        self.assertEqual(batch.qty_initial, 2)
        self.assertEqual(batch.source_ref, f"recover#{log.pk}")

        entry = LedgerEntry.objects.get(movement_type=LedgerEntry.MovementType.RECOVER)
        self.assertEqual(entry.direction, LedgerEntry.Direction.IN)
        self.assertEqual(res.data["available"], 10)

    def test_missing_fields(self):
        res = self.client.post("/api/damage-recovery/damage/", {"quantity": 1}, format="json")
        self.assertEqual(res.status_code, 400)
        self.assertIn("barcode", res.data)
        self.assertIn("warehouse", res.data)

    def test_log_filters_and_summary(self):
        self.client.post(
            "/api/damage-recovery/damage/", {"barcode": "8900001", "warehouse": "WH1", "quantity": 1}, format="json"
        )
        self.client.post(
            "/api/damage-recovery/damage/", {"barcode": "8900001", "warehouse": "WH1", "quantity": 2}, format="json"
        )
        self.client.post(
            "/api/damage-recovery/recover/", {"barcode": "8900001", "warehouse": "WH1", "quantity": 1}, format="json"
        )

        res = self.client.get("/api/damage-recovery/log/", {"action_type": "damage"})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["count"], 2)

        res = self.client.get("/api/damage-recovery/log/", {"action_type": "both"})
        self.assertEqual(res.data["count"], 3)

        res = self.client.get("/api/damage-recovery/log/", {"action_type": "stolen"})
        self.assertEqual(res.status_code, 400)

        res = self.client.get("/api/damage-recovery/summary/")
        self.assertEqual(res.data["totals"], {"damage": 3, "recover": 1})

    def test_view_only_user_cannot_report(self):
        viewer = make_user(capabilities=[CAP_INVENTORY_VIEW])
        client = APIClient()
        client.force_authenticate(viewer)
        res = client.post(
            "/api/damage-recovery/damage/", {"barcode": "8900001", "warehouse": "WH1", "quantity": 1}, format="json"
        )
        self.assertEqual(res.status_code, 403)
        self.assertEqual(client.get("/api/damage-recovery/log/").status_code, 200)
