# messaging/tests/test_messaging.py

from django.test import TestCase
from rest_framework.test import APIClient

from audit.models import AuditLog
from messaging.models import Channel, Mention, Message
from messaging.services import parse_mentions, send_channel_message
from notifications.models import Notification
from permissions.roles import CAP_MESSAGES_MANAGE, CAP_MESSAGES_SEND
from permissions.tests.helpers import make_user


class MentionParsingTests(TestCase):
    def test_tokens_with_dots_and_positions(self):
        found = parse_mentions("hi @alice and @bob.smith!")
        self.assertEqual([m["username"] for m in found], ["alice", "bob.smith"])
        self.assertEqual(found[0]["start"], 3)
        self.assertEqual(found[0]["mention_text"], "@alice")

    def test_empty_text(self):
        self.assertEqual(parse_mentions(""), [])


class ChannelMessageTests(TestCase):
    """
    GUARANTEES:
    - sending stores the message, one Mention per resolved user, and a
      high priority "mention" notification
    - self mentions and unknown names are ignored
    - channel reads are oldest first and honour limit/offset
    - only the sender (or messages.manage) may delete; delete is soft
    """

    def setUp(self):
        self.alice = make_user(username="alice", capabilities=[CAP_MESSAGES_SEND])
        self.bob = make_user(username="bob", capabilities=[CAP_MESSAGES_SEND])
        self.channel = Channel.objects.create(name="general", display_name="General")
        self.client = APIClient()
        self.client.force_authenticate(self.alice)

    def test_send_with_mentions(self):
        res = self.client.post(
            "/api/messages/channels/send/",
            {"channel": "general", "message": "ping @Bob and @alice and @ghost"},
            format="json",
        )
        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["mentioned_users"], ["bob"])

        msg = Message.objects.get()
        mention = Mention.objects.get()
        self.assertEqual(mention.message, msg)
        self.assertEqual(mention.mentioned_user, self.bob)
        self.assertEqual(mention.mentioned_by, self.alice)

        note = Notification.objects.get()
        self.assertEqual(note.user, self.bob)
        self.assertEqual(note.type, "mention")
        self.assertEqual(note.priority, Notification.Priority.HIGH)
        self.assertTrue(AuditLog.objects.filter(resource="messages", resource_id=str(msg.pk)).exists())

    def test_send_validation(self):
        res = self.client.post("/api/messages/channels/send/", {"channel_id": self.channel.pk, "message": "  "}, format="json")
        self.assertEqual(res.status_code, 400)

        res = self.client.post(
            "/api/messages/channels/send/",
            {"channel_id": self.channel.pk, "message": "x", "message_type": "video"},
            format="json",
        )
        self.assertEqual(res.status_code, 400)

        res = self.client.post("/api/messages/channels/send/", {"channel": "nope", "message": "x"}, format="json")
        self.assertEqual(res.status_code, 404)

    def test_send_requires_capability(self):
        self.client.force_authenticate(make_user())
        res = self.client.post("/api/messages/channels/send/", {"channel": "general", "message": "x"}, format="json")
        self.assertEqual(res.status_code, 403)

    def test_channel_messages_oldest_first(self):
        for i in range(3):
            send_channel_message(channel=self.channel, sender=self.alice, message=f"m{i}")

        res = self.client.get(f"/api/messages/channels/{self.channel.pk}/messages/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual([r["message"] for r in res.data["results"]], ["m0", "m1", "m2"])

        res = self.client.get("/api/messages/channels/general/messages/?limit=2")
        self.assertEqual([r["message"] for r in res.data["results"]], ["m1", "m2"])

        res = self.client.get("/api/messages/channels/general/messages/?limit=2&offset=2")
        self.assertEqual([r["message"] for r in res.data["results"]], ["m0"])

    def test_delete_own_or_manage(self):
        mine = send_channel_message(channel=self.channel, sender=self.alice, message="mine")
        theirs = send_channel_message(channel=self.channel, sender=self.bob, message="theirs")

        res = self.client.delete(f"/api/messages/{theirs.pk}/")
        self.assertEqual(res.status_code, 403)

        res = self.client.delete(f"/api/messages/{mine.pk}/")
        self.assertEqual(res.status_code, 200)
        mine.refresh_from_db()
        self.assertFalse(mine.is_active)

        moderator = make_user(capabilities=[CAP_MESSAGES_MANAGE])
        self.client.force_authenticate(moderator)
        res = self.client.delete(f"/api/messages/{theirs.pk}/")
        self.assertEqual(res.status_code, 200)

        res = self.client.get("/api/messages/channels/general/messages/")
        self.assertEqual(res.data["results"], [])

    def test_channel_list_and_create(self):
        send_channel_message(channel=self.channel, sender=self.alice, message="one")

        res = self.client.get("/api/messages/channels/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["results"][0]["message_count"], 1)

        res = self.client.post("/api/messages/channels/", {"name": "ops", "display_name": "Ops"}, format="json")
        self.assertEqual(res.status_code, 403)

        self.client.force_authenticate(make_user(capabilities=[CAP_MESSAGES_MANAGE]))
        res = self.client.post("/api/messages/channels/", {"name": "ops", "display_name": "Ops"}, format="json")
        self.assertEqual(res.status_code, 201, res.data)
        res = self.client.post("/api/messages/channels/", {"name": "ops", "display_name": "Ops 2"}, format="json")
        self.assertEqual(res.status_code, 400)


class DirectMessageTests(TestCase):
    def setUp(self):
        self.alice = make_user(username="alice", capabilities=[CAP_MESSAGES_SEND])
        self.bob = make_user(username="bob")
        self.carol = make_user(username="carol")
        self.client = APIClient()
        self.client.force_authenticate(self.alice)

    def test_send_and_read_conversation(self):
        res = self.client.post(
            "/api/messages/direct/send/", {"recipient_id": str(self.bob.pk), "message": "hey"}, format="json"
        )
        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(Notification.objects.get().user, self.bob)

        Message.objects.create(sender=self.carol, recipient=self.alice, message="other thread")

        res = self.client.get(f"/api/messages/direct/{self.bob.pk}/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual([r["message"] for r in res.data["results"]], ["hey"])

    def test_cannot_message_self(self):
        res = self.client.post(
            "/api/messages/direct/send/", {"recipient_id": str(self.alice.pk), "message": "me"}, format="json"
        )
        self.assertEqual(res.status_code, 400)


class MentionApiTests(TestCase):
    def setUp(self):
        self.alice = make_user(username="alice", first_name="Alice")
        self.bob = make_user(username="bob")
        self.channel = Channel.objects.create(name="general", display_name="General")
        send_channel_message(channel=self.channel, sender=self.alice, message="@bob look")
        send_channel_message(channel=self.channel, sender=self.alice, message="@bob again")
        self.client = APIClient()
        self.client.force_authenticate(self.bob)

    def test_list_and_mark_read(self):
        res = self.client.get("/api/mentions/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["pagination"]["total"], 2)

        mention_id = res.data["results"][0]["id"]
        res = self.client.put(f"/api/mentions/{mention_id}/read/")
        self.assertEqual(res.status_code, 200)

        res = self.client.get("/api/mentions/?unread_only=true")
        self.assertEqual(res.data["pagination"]["total"], 1)

        self.client.force_authenticate(self.alice)
        res = self.client.put(f"/api/mentions/{mention_id}/read/")
        self.assertEqual(res.status_code, 404)

    def test_search_users(self):
        res = self.client.get("/api/mentions/search-users/?q=a")
        self.assertEqual(res.status_code, 400)

        res = self.client.get("/api/mentions/search-users/?q=ali")
        self.assertEqual([u["username"] for u in res.data["results"]], ["alice"])

        res = self.client.get("/api/mentions/search-users/?q=bob")
        self.assertEqual(res.data["results"], [])

    def test_parse(self):
        res = self.client.post("/api/mentions/parse/", {"text": "@alice @nobody"}, format="json")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["valid_count"], 1)
        self.assertEqual(res.data["invalid_count"], 1)
        self.assertEqual(res.data["mentions"][0]["user"]["username"], "alice")

    def test_stats(self):
        res = self.client.get("/api/mentions/stats/?days=7")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["received"]["total_received"], 2)
        self.assertEqual(res.data["top_mentioners"][0]["username"], "alice")
        self.assertEqual(res.data["period_days"], 7)
