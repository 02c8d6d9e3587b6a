# messaging/views.py

"""
MESSAGING ENDPOINTS

GET    /api/messages/channels/                       active channels + message_count
POST   /api/messages/channels/                       create (messages.manage)
GET    /api/messages/channels/{id|name}/messages/    limit (50), offset; oldest first
POST   /api/messages/channels/send/                  channel_id | channel, message, message_type
DELETE /api/messages/{id}/                           soft delete (own, or messages.manage)
GET    /api/messages/direct/{user_id}/               conversation with one user
POST   /api/messages/direct/send/                    recipient_id, message

GET    /api/mentions/                                limit, offset, unread_only
PUT    /api/mentions/{id}/read/
GET    /api/mentions/search-users/?q=                at least 2 characters
POST   /api/mentions/parse/                          {"text"} -> tokens + resolved users
GET    /api/mentions/stats/?days=30
"""

from django.contrib.auth import get_user_model
from django.db.models import Count, Q
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from backend.params import flag_param, int_param
from messaging.models import Channel, Message, Mention
from messaging.serializers import (
    ChannelMessageInputSerializer,
    ChannelSerializer,
    DirectMessageInputSerializer,
    MentionSerializer,
    MessageSerializer,
    ParseMentionsSerializer,
    UserBriefSerializer,
)
from messaging.services import (
    MessagePermissionError,
    MessagingError,
    channel_messages,
    create_channel,
    delete_message,
    direct_conversation,
    mention_stats,
    resolve_mentions,
    search_users,
    send_channel_message,
    send_direct_message,
)
from permissions.roles import CAP_MESSAGES_MANAGE, CAP_MESSAGES_SEND, CapabilityViewMixin

User = get_user_model()


def _limit_offset(params, default_limit):
    return (
        int_param(params, "limit", default_limit, minimum=1, maximum=200),
        int_param(params, "offset", 0),
    )


def _channel_from_ref(ref):
    qs = Channel.objects.filter(is_active=True)
    ref = str(ref or "").strip()
    if ref.isdigit():
        return get_object_or_404(qs, pk=int(ref))
    return get_object_or_404(qs, name__iexact=ref)


def _with_relations(messages):
    ids = [m.pk for m in messages]
    rows = {
        m.pk: m
        for m in Message.objects.filter(pk__in=ids)
        .select_related("sender", "sender__role", "channel")
        .prefetch_related("mentions__mentioned_user")
    }
    return [rows[pk] for pk in ids]


# ============================================================
# CHANNELS
# ============================================================

class ChannelListView(CapabilityViewMixin, APIView):
    capability_map = {"get": None, "post": CAP_MESSAGES_MANAGE}

    def get(self, request):
        channels = Channel.objects.filter(is_active=True).annotate(
            message_count=Count("messages", filter=Q(messages__is_active=True))
        )
        return Response({"results": ChannelSerializer(channels, many=True).data})

    def post(self, request):
        serializer = ChannelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            channel = create_channel(
                name=data["name"],
                display_name=data["display_name"],
                description=data.get("description", ""),
                is_private=data.get("is_private", False),
                user=request.user,
                request=request,
            )
        except MessagingError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(ChannelSerializer(channel).data, status=status.HTTP_201_CREATED)


class ChannelMessagesView(APIView):
    def get(self, request, channel):
        channel = _channel_from_ref(channel)
        try:
            limit, offset = _limit_offset(request.query_params, 50)
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        rows = _with_relations(channel_messages(channel, limit=limit, offset=offset))
        return Response(
            {
                "channel": ChannelSerializer(channel).data,
                "results": MessageSerializer(rows, many=True).data,
                "limit": limit,
                "offset": offset,
            }
        )


class ChannelSendView(CapabilityViewMixin, APIView):
    default_capability = CAP_MESSAGES_SEND

    def post(self, request):
        serializer = ChannelMessageInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        channel = _channel_from_ref(data.get("channel_id") or data.get("channel"))

        try:
            msg = send_channel_message(
                channel=channel,
                sender=request.user,
                message=data["message"],
                message_type=data["message_type"],
                file_data=data.get("file_data"),
                voice_duration=data.get("voice_duration"),
                request=request,
            )
        except MessagingError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(MessageSerializer(_with_relations([msg])[0]).data, status=status.HTTP_201_CREATED)


class MessageDetailView(APIView):
    def delete(self, request, pk):
        msg = get_object_or_404(Message.objects.select_related("channel"), pk=pk, is_active=True)
        try:
            delete_message(message=msg, user=request.user, request=request)
        except MessagePermissionError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        return Response({"detail": "Message deleted"})


# ============================================================
# DIRECT
# ============================================================

class DirectConversationView(APIView):
    def get(self, request, user_id):
        other = get_object_or_404(User, pk=user_id, is_active=True)
        try:
            limit, offset = _limit_offset(request.query_params, 50)
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        rows = _with_relations(direct_conversation(request.user, other, limit=limit, offset=offset))
        return Response(
            {
                "user": UserBriefSerializer(other).data,
                "results": MessageSerializer(rows, many=True).data,
                "limit": limit,
                "offset": offset,
            }
        )


class DirectSendView(CapabilityViewMixin, APIView):
    default_capability = CAP_MESSAGES_SEND

    def post(self, request):
        serializer = DirectMessageInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        recipient = get_object_or_404(User, pk=data["recipient_id"], is_active=True)

        try:
            msg = send_direct_message(
                recipient=recipient,
                sender=request.user,
                message=data["message"],
                message_type=data["message_type"],
                file_data=data.get("file_data"),
                voice_duration=data.get("voice_duration"),
                request=request,
            )
        except MessagingError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(MessageSerializer(_with_relations([msg])[0]).data, status=status.HTTP_201_CREATED)


# ============================================================
# MENTIONS
# ============================================================

class MentionListView(APIView):
    def get(self, request):
        params = request.query_params
        try:
            limit, offset = _limit_offset(params, 20)
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        qs = Mention.objects.filter(mentioned_user=request.user, message__is_active=True)
        if flag_param(params, "unread_only"):
            qs = qs.filter(read_at__isnull=True)

        total = qs.count()
        rows = qs.select_related("mentioned_by", "mentioned_by__role", "message", "message__channel")[
            offset : offset + limit
        ]
        return Response(
            {
                "results": MentionSerializer(rows, many=True).data,
                "pagination": {
                    "total": total,
                    "limit": limit,
                    "offset": offset,
                    "has_more": total > offset + limit,
                },
            }
        )


class MentionReadView(APIView):
    def put(self, request, pk):
        updated = Mention.objects.filter(pk=pk, mentioned_user=request.user).update(read_at=timezone.now())
        if not updated:
            return Response({"detail": "Mention not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response({"detail": "Mention marked as read"})

    patch = put
    post = put


class MentionUserSearchView(APIView):
    def get(self, request):
        term = (request.query_params.get("q") or "").strip()
        if len(term.lstrip("@")) < 2:
            return Response(
                {"detail": "Search term must be at least 2 characters"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        users = search_users(term, exclude=request.user)
        return Response({"results": UserBriefSerializer(users, many=True).data})


class MentionParseView(APIView):
    def post(self, request):
        serializer = ParseMentionsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        found = resolve_mentions(serializer.validated_data["text"])
        results = []
        for item in found:
            user = item.pop("user")
            item["user"] = UserBriefSerializer(user).data if user is not None else None
            item["valid"] = user is not None
            results.append(item)

        return Response(
            {
                "mentions": results,
                "valid_count": sum(1 for r in results if r["valid"]),
                "invalid_count": sum(1 for r in results if not r["valid"]),
            }
        )


class MentionStatsView(APIView):
    def get(self, request):
        try:
            days = int_param(request.query_params, "days", 30, minimum=1, maximum=365)
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(mention_stats(request.user, days=days))
