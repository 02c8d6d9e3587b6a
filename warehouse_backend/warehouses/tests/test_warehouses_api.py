# warehouses/tests/test_warehouses_api.py

from django.test import TestCase
from rest_framework.test import APIClient

from permissions.roles import CAP_WAREHOUSES_MANAGE
from permissions.tests.helpers import make_user
from products.tests.helpers import make_warehouse
from warehouses.models import Executive, Warehouse
from warehouses.services import resolve_warehouse


class WarehouseApiTests(TestCase):
    """
    GUARANTEES:
    - codes are stored upper-case and unique
    - delete deactivates; inactive rows drop out of dropdown lists
    - any authenticated user can read, only warehouses.manage can write
    """

    def setUp(self):
        self.client = APIClient()
        self.manager = make_user(capabilities=[CAP_WAREHOUSES_MANAGE])
        self.client.force_authenticate(self.manager)

    def test_create_normalises_code(self):
        res = self.client.post("/api/warehouses/", {"code": " blr_wh ", "name": "Bangalore"}, format="json")
        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["code"], "BLR_WH")
        self.assertEqual(res.data["kind"], Warehouse.Kind.WAREHOUSE)

        res = self.client.post("/api/warehouses/", {"code": "BLR_WH", "name": "Again"}, format="json")
        self.assertEqual(res.status_code, 400)

    def test_soft_delete_and_include_inactive(self):
        wh = make_warehouse("GGM_WH")
        make_warehouse("BLR_WH")

        res = self.client.delete(f"/api/warehouses/{wh.pk}/")
        self.assertEqual(res.status_code, 204)
        self.assertTrue(Warehouse.objects.filter(pk=wh.pk, is_active=False).exists())

        res = self.client.get("/api/warehouses/")
        self.assertEqual([row["code"] for row in res.data], ["BLR_WH"])

        res = self.client.get("/api/warehouses/", {"include_inactive": "true"})
        self.assertEqual(len(res.data), 2)

    def test_read_only_for_plain_users(self):
        make_warehouse("BLR_WH")
        self.client.force_authenticate(make_user())
        res = self.client.get("/api/warehouses/", {"search": "blr"})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(len(res.data), 1)

        res = self.client.post("/api/warehouses/", {"code": "X1", "name": "X"}, format="json")
        self.assertEqual(res.status_code, 403)

    def test_executives_filter_by_warehouse(self):
        blr = make_warehouse("BLR_WH")
        ggm = make_warehouse("GGM_WH")
        Executive.objects.create(name="Kiran", warehouse=blr)
        Executive.objects.create(name="Meena", warehouse=ggm)

        res = self.client.get("/api/executives/", {"warehouse": "blr_wh"})
        self.assertEqual([row["name"] for row in res.data], ["Kiran"])

    def test_resolve_warehouse(self):
        wh = make_warehouse("BLR_WH")
        self.assertEqual(resolve_warehouse("blr_wh"), wh)
        self.assertEqual(resolve_warehouse(str(wh.pk)), wh)
        with self.assertRaises(Warehouse.DoesNotExist):
            resolve_warehouse("NOPE")
