# notifications/tests/test_notifications.py

from unittest import mock

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import DatabaseError
from django.test import TestCase
from rest_framework.test import APIClient

from notifications.models import Notification, NotificationPreference
from notifications.services import broadcast_to_role, notify_user
from permissions.roles import CAP_NOTIFICATIONS_SEND, CAP_SYSTEM_MONITORING
from permissions.tests.helpers import make_role, make_user


class NotifyServiceTests(TestCase):
    """
    GUARANTEES:
    - notify_user stores a row and pushes to user_<id> only after commit
    - a storage failure still pushes (id=None) and does not raise
    - broadcast_to_role reaches every active user in the role
    """

    def setUp(self):
        self.user = make_user()

    def test_push_waits_for_commit(self):
        with mock.patch("notifications.services._send") as send:
            with self.captureOnCommitCallbacks(execute=False) as callbacks:
                row = notify_user(self.user, type="mention", title="Hi", message="hello")
            send.assert_not_called()

            for callback in callbacks:
                callback()

        self.assertEqual(Notification.objects.get().pk, row.pk)
        group, payload = send.call_args.args
        self.assertEqual(group, f"user_{self.user.pk}")
        self.assertEqual(payload["id"], row.pk)
        self.assertEqual(payload["type"], "mention")

    def test_persistence_failure_still_pushes(self):
        with mock.patch("notifications.services._send") as send, mock.patch.object(
            Notification.objects, "create", side_effect=DatabaseError("boom")
        ):
            with self.captureOnCommitCallbacks(execute=True):
                row = notify_user(self.user, title="Hi", message="hello")

        self.assertIsNone(row)
        self.assertIsNone(send.call_args.args[1]["id"])

    def test_broadcast_to_role(self):
        role = make_role("manager")
        a = make_user(role=role)
        b = make_user(role=role)
        make_user(role=role, is_active=False)
        make_user()

        results = broadcast_to_role("manager", type="dispatch_created", title="New", message="x")

        self.assertEqual(len(results), 2)
        self.assertEqual(
            set(Notification.objects.values_list("user_id", flat=True)),
            {a.pk, b.pk},
        )

    def test_pushed_event_reaches_channel_layer(self):
        layer = get_channel_layer()
        channel = async_to_sync(layer.new_channel)()
        async_to_sync(layer.group_add)(f"user_{self.user.pk}", channel)

        with self.captureOnCommitCallbacks(execute=True):
            notify_user(self.user, title="Live", message="now")

        message = async_to_sync(layer.receive)(channel)
        self.assertEqual(message["type"], "notification.message")
        self.assertEqual(message["payload"]["title"], "Live")


class NotificationApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = make_user()
        self.client.force_authenticate(self.user)
        self.other = make_user()
        for i in range(3):
            notify_user(self.user, type="mention" if i else "info", title=f"n{i}", message="m")
        notify_user(self.other, title="theirs", message="m")

    def test_list_with_pagination_block(self):
        res = self.client.get("/api/notifications/", {"limit": 2})

        self.assertEqual(res.status_code, 200)
        self.assertEqual(len(res.data["results"]), 2)
        self.assertEqual(res.data["pagination"]["total"], 3)
        self.assertEqual(res.data["pagination"]["unread"], 3)
        self.assertTrue(res.data["pagination"]["has_more"])

        res = self.client.get("/api/notifications/", {"type": "mention"})
        self.assertEqual(res.data["pagination"]["total"], 2)

    def test_mark_read_and_read_all(self):
        first = Notification.objects.filter(user=self.user).first()

        res = self.client.put(f"/api/notifications/{first.pk}/read/")
        self.assertEqual(res.status_code, 200)
        first.refresh_from_db()
        self.assertIsNotNone(first.read_at)

        theirs = Notification.objects.get(user=self.other)
        res = self.client.put(f"/api/notifications/{theirs.pk}/read/")
        self.assertEqual(res.status_code, 404)

        res = self.client.put("/api/notifications/read-all/")
        self.assertEqual(res.data["count"], 2)
        res = self.client.get("/api/notifications/", {"unread_only": "true"})
        self.assertEqual(res.data["pagination"]["total"], 0)

    def test_delete_own_only(self):
        mine = Notification.objects.filter(user=self.user).first()
        theirs = Notification.objects.get(user=self.other)

        self.assertEqual(self.client.delete(f"/api/notifications/{mine.pk}/").status_code, 204)
        self.assertEqual(self.client.delete(f"/api/notifications/{theirs.pk}/").status_code, 404)

    def test_preferences_default_then_merge(self):
        res = self.client.get("/api/notifications/preferences/")
        self.assertFalse(res.data["preferences"]["push"]["dispatches"])

        res = self.client.put(
            "/api/notifications/preferences/",
            {"preferences": {"push": {"dispatches": True}}},
            format="json",
        )
        self.assertEqual(res.status_code, 200, res.data)
        stored = NotificationPreference.objects.get(user=self.user).preferences
        self.assertTrue(stored["push"]["dispatches"])
        self.assertTrue(stored["email"]["mentions"])

        res = self.client.put(
            "/api/notifications/preferences/", {"preferences": {"sms": {"mentions": True}}}, format="json"
        )
        self.assertEqual(res.status_code, 400)

    def test_stats(self):
        res = self.client.get("/api/notifications/stats/", {"days": 7})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["summary"]["total"], 3)
        self.assertEqual(res.data["summary"]["mentions"], 2)
        self.assertEqual(res.data["period_days"], 7)

    def test_create_needs_capability(self):
        body = {"target_user_id": str(self.other.pk), "title": "Hi", "message": "there"}
        self.assertEqual(self.client.post("/api/notifications/", body, format="json").status_code, 403)

        sender = make_user(capabilities=[CAP_NOTIFICATIONS_SEND])
        client = APIClient()
        client.force_authenticate(sender)
        res = client.post("/api/notifications/", body, format="json")
        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["summary"]["successful"], 1)

        res = client.post("/api/notifications/", {"title": "Hi", "message": "x"}, format="json")
        self.assertEqual(res.status_code, 400)

    def test_test_notification_and_connected_users(self):
        res = self.client.post("/api/notifications/test/", {}, format="json")
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["notification"]["priority"], "low")

        self.assertEqual(self.client.get("/api/notifications/connected-users/").status_code, 403)
        admin = make_user(capabilities=[CAP_SYSTEM_MONITORING])
        client = APIClient()
        client.force_authenticate(admin)
        res = client.get("/api/notifications/connected-users/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["connected_count"], 0)
