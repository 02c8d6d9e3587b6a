# audit/tests/test_audit_api.py

from django.test import RequestFactory, TestCase
from rest_framework.test import APIClient

from audit.models import AuditLog
from audit.services import record_audit
from permissions.roles import CAP_SYSTEM_AUDIT_LOG
from permissions.tests.helpers import make_user

URL = "/api/audit-logs/"


class RecordAuditTests(TestCase):
    def test_request_metadata_and_json_safe_details(self):
        user = make_user()
        request = RequestFactory().post(
            "/", HTTP_X_FORWARDED_FOR="10.0.0.7, 172.16.0.1", HTTP_USER_AGENT="pytest"
        )
        entry = record_audit(
            user=user,
            action=AuditLog.Action.UPDATE,
            resource="orders",
            resource_id=42,
            details={"ids": {1, 2}, "owner": user.pk},
            request=request,
        )
        self.assertEqual(entry.resource_id, "42")
        self.assertEqual(entry.ip_address, "10.0.0.7")
        self.assertEqual(entry.user_agent, "pytest")
        self.assertEqual(entry.details["owner"], str(user.pk))
        self.assertEqual(sorted(entry.details["ids"]), [1, 2])

    def test_anonymous_actor_is_stored_as_null(self):
        entry = record_audit(user=None, action=AuditLog.Action.LOGIN, resource="auth")
        self.assertIsNone(entry.user)
        self.assertEqual(entry.resource_id, "")


class AuditLogApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.auditor = make_user(capabilities=[CAP_SYSTEM_AUDIT_LOG])
        self.client.force_authenticate(self.auditor)
        self.other = make_user()
        record_audit(user=self.auditor, action=AuditLog.Action.CREATE, resource="orders", resource_id=1)
        record_audit(user=self.other, action=AuditLog.Action.DELETE, resource="orders", resource_id=1)
        record_audit(user=self.other, action=AuditLog.Action.LOGIN, resource="auth")

    def test_filters(self):
        res = self.client.get(URL)
        self.assertEqual(res.data["count"], 3)

        res = self.client.get(URL, {"resource": "orders", "action": "delete"})
        self.assertEqual(res.data["count"], 1)
        self.assertEqual(res.data["results"][0]["user_email"], self.other.email)

        res = self.client.get(f"{URL}user/{self.other.pk}/")
        self.assertEqual(res.data["count"], 2)

        res = self.client.get(f"{URL}action/login/")
        self.assertEqual(res.data["count"], 1)

        res = self.client.get(URL, {"date_from": "yesterday"})
        self.assertEqual(res.status_code, 400)

    def test_requires_audit_capability(self):
        self.client.force_authenticate(self.other)
        self.assertEqual(self.client.get(URL).status_code, 403)
