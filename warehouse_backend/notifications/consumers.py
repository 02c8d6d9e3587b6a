# notifications/consumers.py

"""
======================================================
PATH: notifications/consumers.py
======================================================
NOTIFICATION SOCKET  (ws/notifications/?token=<access>)

Server -> client frames are {"event": <name>, "data": {...}}:
- connected       once, right after the handshake
- notification    pending unread rows on connect, then live pushes
- pong            reply to ping
- user_typing     relayed typing indicator
- error           bad client frame

Client -> server frames are {"type": <name>, ...}:
- ping
- notification_read   {"id": <notification id>}
- typing              {"target_user_id" | "room", "is_typing"}; room must be one
                      of the socket's own groups (user_<id>, role_<name>)
- activity            any payload; refreshes the session's last_activity
"""

import logging
import re
import uuid

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.utils import timezone

from notifications.models import Notification, UserSession
from notifications.services import mark_read, role_group, unread_for, user_group

logger = logging.getLogger(__name__)

PENDING_ON_CONNECT = 10
CLOSE_UNAUTHENTICATED = 4001
GROUP_NAME_RE = re.compile(r"^[A-Za-z0-9_.-]{1,99}$")


class NotificationConsumer(AsyncJsonWebsocketConsumer):
    async def connect(self):
        user = self.scope.get("user")
        if user is None or not user.is_authenticated:
            await self.close(code=CLOSE_UNAUTHENTICATED)
            return

        self.user = user
        self.session_id = uuid.uuid4().hex
        self.groups_joined = [user_group(user.pk)]
        role_name = await self._role_name()
        if role_name:
            self.groups_joined.append(role_group(role_name))

        for group in self.groups_joined:
            await self.channel_layer.group_add(group, self.channel_name)

        await self.accept()
        await self._open_session()

        await self._emit(
            "connected",
            {
                "session_id": self.session_id,
                "user": {
                    "id": str(user.pk),
                    "username": user.username,
                    "name": user.display_name,
                    "role": role_name,
                },
                "timestamp": timezone.now().isoformat(),
            },
        )

        for row in await self._pending():
            await self._emit("notification", row)

        logger.info("ws.connected", extra={"user_id": str(user.pk), "session_id": self.session_id})

    async def disconnect(self, code):
        if not hasattr(self, "session_id"):
            return
        for group in self.groups_joined:
            await self.channel_layer.group_discard(group, self.channel_name)
        await self._close_session()
        logger.info("ws.disconnected", extra={"user_id": str(self.user.pk), "code": code})

    async def receive_json(self, content, **kwargs):
        kind = (content or {}).get("type")

        if kind == "ping":
            await self._touch()
            await self._emit("pong", {"timestamp": timezone.now().isoformat()})
        elif kind == "notification_read":
            await self._mark_read(content.get("id"))
        elif kind == "typing":
            await self._relay_typing(content)
        elif kind == "activity":
            await self._touch()
        else:
            await self._emit("error", {"message": f"Unknown message type: {kind}"})

    # ------------------ group handlers ------------------

    async def notification_message(self, event):
        await self._emit("notification", event["payload"])

    async def user_typing(self, event):
        if event.get("sender_channel") == self.channel_name:
            return
        await self._emit("user_typing", event["payload"])

    # ------------------ helpers ------------------

    async def _emit(self, name, data):
        await self.send_json({"event": name, "data": data})

    async def _relay_typing(self, content):
        room = (content.get("room") or "").strip()
        target = content.get("target_user_id")
        if not room and not target:
            await self._emit("error", {"message": "typing needs room or target_user_id"})
            return

        # rooms are limited to this socket's own groups; other users only via target_user_id
        if room and room not in self.groups_joined:
            await self._emit("error", {"message": "typing room not joined"})
            return

        group = room if room else user_group(target)
        if not GROUP_NAME_RE.match(group):
            await self._emit("error", {"message": "invalid typing room"})
            return
        await self.channel_layer.group_send(
            group,
            {
                "type": "user.typing",
                "sender_channel": self.channel_name,
                "payload": {
                    "user_id": str(self.user.pk),
                    "user_name": self.user.display_name,
                    "is_typing": bool(content.get("is_typing", True)),
                },
            },
        )

    @database_sync_to_async
    def _role_name(self):
        role = self.user.role
        if role is None or not role.is_active:
            return None
        return role.name

    @database_sync_to_async
    def _open_session(self):
        headers = dict(self.scope.get("headers") or [])
        client = self.scope.get("client") or [None]
        UserSession.objects.create(
            user=self.user,
            session_id=self.session_id,
            channel_name=self.channel_name,
            ip_address=client[0],
            user_agent=headers.get(b"user-agent", b"").decode()[:255],
        )

    @database_sync_to_async
    def _close_session(self):
        UserSession.objects.filter(session_id=self.session_id).update(
            is_active=False, last_activity=timezone.now()
        )

    @database_sync_to_async
    def _touch(self):
        UserSession.objects.filter(session_id=self.session_id).update(last_activity=timezone.now())

    @database_sync_to_async
    def _pending(self):
        now = timezone.now()
        rows = unread_for(self.user, limit=PENDING_ON_CONNECT)
        ids = [r.pk for r in rows]
        Notification.objects.filter(pk__in=ids, delivered_at__isnull=True).update(delivered_at=now)
        return [r.as_event() for r in rows]

    @database_sync_to_async
    def _mark_read(self, notification_id):
        try:
            notification_id = int(notification_id)
        except (TypeError, ValueError):
            return False
        return mark_read(user=self.user, notification_id=notification_id)
