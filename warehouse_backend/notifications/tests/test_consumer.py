# notifications/tests/test_consumer.py

from asgiref.sync import async_to_sync
from channels.db import database_sync_to_async
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator
from django.test import TransactionTestCase
from rest_framework_simplejwt.tokens import AccessToken

from notifications.middleware import JWTAuthMiddleware
from notifications.models import Notification, UserSession
from notifications.routing import websocket_urlpatterns
from notifications.services import notify_user
from permissions.tests.helpers import make_role, make_user

application = JWTAuthMiddleware(URLRouter(websocket_urlpatterns))


class NotificationConsumerTests(TransactionTestCase):
    """
    GUARANTEES:
    - sockets without a valid token are refused
    - connected, then pending unread notifications
    - ping -> pong, notification_read marks the row
    - live pushes arrive; disconnect closes the session row
    """

    def setUp(self):
        self.user = make_user(role=make_role("operator"))
        self.token = str(AccessToken.for_user(self.user))

    def test_rejects_missing_or_bad_token(self):
        async def run():
            for path in ("/ws/notifications/", "/ws/notifications/?token=garbage"):
                communicator = WebsocketCommunicator(application, path)
                connected, _ = await communicator.connect()
                self.assertFalse(connected)

        async_to_sync(run)()

    def test_session_flow(self):
        pending = notify_user(self.user, title="Missed", message="while offline")
        session_active = database_sync_to_async(
            lambda: UserSession.objects.get(user=self.user).is_active
        )

        async def run():
            communicator = WebsocketCommunicator(application, f"/ws/notifications/?token={self.token}")
            connected, _ = await communicator.connect()
            self.assertTrue(connected)

            hello = await communicator.receive_json_from()
            self.assertEqual(hello["event"], "connected")
            self.assertEqual(hello["data"]["user"]["role"], "operator")

            first = await communicator.receive_json_from()
            self.assertEqual(first["event"], "notification")
            self.assertEqual(first["data"]["id"], pending.pk)

            await communicator.send_json_to({"type": "ping"})
            pong = await communicator.receive_json_from()
            self.assertEqual(pong["event"], "pong")

            await communicator.send_json_to({"type": "notification_read", "id": pending.pk})
            await communicator.send_json_to({"type": "bogus"})
            error = await communicator.receive_json_from()
            self.assertEqual(error["event"], "error")
            self.assertTrue(await session_active())

            await database_sync_to_async(notify_user)(self.user, title="Live", message="now")
            live = await communicator.receive_json_from()
            self.assertEqual(live["event"], "notification")
            self.assertEqual(live["data"]["title"], "Live")

            await communicator.disconnect()
            self.assertFalse(await session_active())

        async_to_sync(run)()

        pending.refresh_from_db()
        self.assertIsNotNone(pending.read_at)
        self.assertIsNotNone(pending.delivered_at)
        self.assertEqual(Notification.objects.filter(user=self.user).count(), 2)


class TypingRelayTests(TransactionTestCase):
    """
    GUARANTEES:
    - room typing only reaches groups the sending socket joined
    - target_user_id reaches that user's sockets
    - the sender does not get its own typing frame back
    """

    def setUp(self):
        operators = make_role("operator")
        self.sender = make_user(role=operators)
        self.colleague = make_user(role=operators)
        self.manager = make_user(role=make_role("manager"))

    def _communicator(self, user):
        return WebsocketCommunicator(application, f"/ws/notifications/?token={AccessToken.for_user(user)}")

    def test_room_must_be_one_of_the_sockets_groups(self):
        async def run():
            sockets = {}
            for name in ("sender", "colleague", "manager"):
                sockets[name] = self._communicator(getattr(self, name))
                connected, _ = await sockets[name].connect()
                self.assertTrue(connected)
                hello = await sockets[name].receive_json_from()
                self.assertEqual(hello["event"], "connected")
            sender, colleague, manager = sockets["sender"], sockets["colleague"], sockets["manager"]

            for room in ("role_manager", f"user_{self.manager.pk}"):
                await sender.send_json_to({"type": "typing", "room": room})
                error = await sender.receive_json_from()
                self.assertEqual(error["event"], "error")
                self.assertEqual(error["data"]["message"], "typing room not joined")
            self.assertTrue(await manager.receive_nothing())

            await sender.send_json_to({"type": "typing", "room": "role_operator"})
            relayed = await colleague.receive_json_from()
            self.assertEqual(relayed["event"], "user_typing")
            self.assertEqual(relayed["data"]["user_id"], str(self.sender.pk))
            self.assertTrue(await sender.receive_nothing())
            self.assertTrue(await manager.receive_nothing())

            await sender.send_json_to({"type": "typing", "target_user_id": str(self.manager.pk), "is_typing": False})
            direct = await manager.receive_json_from()
            self.assertEqual(direct["event"], "user_typing")
            self.assertFalse(direct["data"]["is_typing"])

            for communicator in sockets.values():
                await communicator.disconnect()

        async_to_sync(run)()
