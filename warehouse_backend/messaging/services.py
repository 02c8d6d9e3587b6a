# messaging/services.py

"""
======================================================
PATH: messaging/services.py
======================================================
MESSAGING SERVICES

send_channel_message() / send_direct_message()
- One transaction: message row + one Mention row per resolved @username.
- Each mentioned user gets a "mention" notification (pushed after commit).
- Self mentions and unknown usernames are ignored.

Conversation reads return the newest `limit` rows, oldest first.
"""

from __future__ import annotations

import logging
import re
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Case, Count, IntegerField, Q, Value, When
from django.utils import timezone

from audit.models import AuditLog
from audit.services import record_audit
from messaging.models import Channel, Message, Mention
from notifications.models import Notification
from notifications.services import notify_user
from permissions.roles import CAP_MESSAGES_MANAGE, user_has_capability

logger = logging.getLogger(__name__)

User = get_user_model()

MENTION_RE = re.compile(r"@(\w+(?:\.\w+)*)")


class MessagingError(Exception):
    pass


class MessagePermissionError(MessagingError):
    pass


# ============================================================
# MENTIONS
# ============================================================

def parse_mentions(text: str) -> list[dict]:
    """Every @token with its position; no database access."""
    return [
        {
            "mention_text": match.group(0),
            "username": match.group(1),
            "start": match.start(),
            "end": match.end(),
        }
        for match in MENTION_RE.finditer(text or "")
    ]


def resolve_mentions(text: str) -> list[dict]:
    """parse_mentions() plus the matching active user (or None)."""
    found = parse_mentions(text)
    names = {m["username"].lower() for m in found}
    users = {}
    if names:
        q = Q()
        for name in names:
            q |= Q(username__iexact=name)
        users = {u.username.lower(): u for u in User.objects.filter(q, is_active=True)}

    for item in found:
        item["user"] = users.get(item["username"].lower())
    return found


def _record_mentions(message: Message) -> list[Mention]:
    seen = set()
    created = []
    for item in resolve_mentions(message.message):
        user = item["user"]
        if user is None or user.pk == message.sender_id or user.pk in seen:
            continue
        seen.add(user.pk)

        mention = Mention.objects.create(
            message=message,
            mentioned_user=user,
            mentioned_by=message.sender,
            context=message.message[:500],
        )
        created.append(mention)

        where = f"#{message.channel.name}" if message.channel_id else "a direct message"
        notify_user(
            user,
            type="mention",
            title="You were mentioned",
            message=f"{message.sender.display_name} mentioned you in {where}",
            data={
                "mention_id": mention.pk,
                "message_id": message.pk,
                "channel": message.channel.name if message.channel_id else None,
                "mentioned_by": str(message.sender.pk),
                "context": mention.context,
            },
            priority=Notification.Priority.HIGH,
        )
    return created


# ============================================================
# SEND / DELETE
# ============================================================

def _validate_body(message, message_type):
    text = (message or "").strip()
    if not text:
        raise MessagingError("message is required")
    if message_type not in Message.MessageType.values:
        raise MessagingError(f"message_type must be one of: {', '.join(Message.MessageType.values)}")
    return text


@transaction.atomic
def send_channel_message(*, channel, sender, message, message_type="text", file_data=None, voice_duration=None, request=None):
    text = _validate_body(message, message_type)
    if not channel.is_active:
        raise MessagingError("Channel is not active")

    msg = Message.objects.create(
        channel=channel,
        sender=sender,
        message=text,
        message_type=message_type,
        file_data=file_data,
        voice_duration=voice_duration,
    )
    mentions = _record_mentions(msg)

    record_audit(
        user=sender,
        action=AuditLog.Action.CREATE,
        resource="messages",
        resource_id=msg.pk,
        details={"channel": channel.name, "message_type": message_type, "length": len(text), "mentions": len(mentions)},
        request=request,
    )
    logger.info("message.sent", extra={"message_id": msg.pk, "channel": channel.name})
    return msg


@transaction.atomic
def send_direct_message(*, recipient, sender, message, message_type="text", file_data=None, voice_duration=None, request=None):
    text = _validate_body(message, message_type)
    if recipient.pk == sender.pk:
        raise MessagingError("Cannot send a direct message to yourself")

    msg = Message.objects.create(
        recipient=recipient,
        sender=sender,
        message=text,
        message_type=message_type,
        file_data=file_data,
        voice_duration=voice_duration,
    )
    _record_mentions(msg)

    notify_user(
        recipient,
        type="direct_message",
        title=f"Message from {sender.display_name}",
        message=text[:200],
        data={"message_id": msg.pk, "sender": str(sender.pk)},
    )
    logger.info("message.direct", extra={"message_id": msg.pk})
    return msg


@transaction.atomic
def delete_message(*, message, user, request=None) -> None:
    """Soft delete; senders delete their own, messages.manage deletes any."""
    if message.sender_id != user.pk and not user_has_capability(user, CAP_MESSAGES_MANAGE):
        raise MessagePermissionError("You can only delete your own messages")

    message.is_active = False
    message.save(update_fields=["is_active", "updated_at"])

    record_audit(
        user=user,
        action=AuditLog.Action.DELETE,
        resource="messages",
        resource_id=message.pk,
        details={
            "channel": message.channel.name if message.channel_id else None,
            "original_sender": str(message.sender_id),
        },
        request=request,
    )


@transaction.atomic
def create_channel(*, name, display_name, description="", is_private=False, user=None, request=None) -> Channel:
    if Channel.objects.filter(name__iexact=name).exists():
        raise MessagingError("Channel with this name already exists")

    channel = Channel.objects.create(
        name=name,
        display_name=display_name,
        description=description,
        is_private=is_private,
        created_by=user,
    )
    record_audit(
        user=user,
        action=AuditLog.Action.CREATE,
        resource="channels",
        resource_id=channel.pk,
        details={"name": name, "is_private": is_private},
        request=request,
    )
    return channel


# ============================================================
# READS
# ============================================================

def _window(qs, *, limit, offset):
    rows = list(qs.order_by("-created_at", "-id")[offset : offset + limit])
    rows.reverse()
    return rows


def channel_messages(channel, *, limit=50, offset=0):
    qs = channel.messages.filter(is_active=True).select_related("sender")
    return _window(qs, limit=limit, offset=offset)


def direct_conversation(user, other, *, limit=50, offset=0):
    qs = Message.objects.filter(channel__isnull=True, is_active=True).filter(
        Q(sender=user, recipient=other) | Q(sender=other, recipient=user)
    ).select_related("sender", "recipient")
    return _window(qs, limit=limit, offset=offset)


def search_users(term, *, exclude=None, limit=10):
    term = (term or "").strip().lstrip("@")
    if len(term) < 2:
        return []

    qs = User.objects.filter(is_active=True).filter(
        Q(username__icontains=term)
        | Q(email__icontains=term)
        | Q(first_name__icontains=term)
        | Q(last_name__icontains=term)
    )
    if exclude is not None:
        qs = qs.exclude(pk=exclude.pk)

    qs = qs.annotate(
        rank=Case(
            When(username__istartswith=term, then=Value(1)),
            When(email__istartswith=term, then=Value(2)),
            default=Value(3),
            output_field=IntegerField(),
        )
    ).select_related("role")
    return list(qs.order_by("rank", "username")[:limit])


def mention_stats(user, *, days=30) -> dict:
    since = timezone.now() - timedelta(days=days)
    received = Mention.objects.filter(mentioned_user=user, created_at__gte=since)

    counts = received.aggregate(
        total_received=Count("id"),
        unread=Count("id", filter=Q(read_at__isnull=True)),
        read=Count("id", filter=Q(read_at__isnull=False)),
    )
    sent = Mention.objects.filter(mentioned_by=user, created_at__gte=since).count()
    top = (
        received.values("mentioned_by_id", "mentioned_by__username", "mentioned_by__email")
        .annotate(mention_count=Count("id"))
        .order_by("-mention_count", "mentioned_by__username")[:5]
    )

    return {
        "received": counts,
        "sent": {"total_sent": sent},
        "top_mentioners": [
            {
                "id": str(row["mentioned_by_id"]),
                "username": row["mentioned_by__username"],
                "email": row["mentioned_by__email"],
                "mention_count": row["mention_count"],
            }
            for row in top
        ],
        "period_days": days,
    }
