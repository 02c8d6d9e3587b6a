# notifications/views.py

"""
NOTIFICATION ENDPOINTS (all scoped to request.user unless noted)

GET    /api/notifications/                    limit, offset, unread_only, type
POST   /api/notifications/                    send to user(s) or a role (notifications.send)
PUT    /api/notifications/{id}/read/          mark one read
PUT    /api/notifications/read-all/           mark all read
DELETE /api/notifications/{id}/               delete one
GET    /api/notifications/preferences/        defaults when never saved
PUT    /api/notifications/preferences/
GET    /api/notifications/stats/?days=30
POST   /api/notifications/test/               send yourself a test notification
GET    /api/notifications/connected-users/    active sockets (system.monitoring)
"""

from datetime import timedelta

from django.contrib.auth import get_user_model
from django.db.models import Count, Q
from django.db.models.functions import TruncDate
from django.utils import timezone
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from backend.params import flag_param, int_param
from notifications.models import Notification, NotificationPreference, UserSession, default_preferences
from notifications.serializers import (
    NotificationCreateSerializer,
    NotificationSerializer,
    PreferencesSerializer,
    UserSessionSerializer,
)
from notifications.services import mark_all_read, mark_read, notify_user, notify_users, users_with_role
from permissions.roles import CAP_NOTIFICATIONS_SEND, CAP_SYSTEM_MONITORING, CapabilityViewMixin

User = get_user_model()


class NotificationListView(CapabilityViewMixin, APIView):
    capability_map = {"get": None, "post": CAP_NOTIFICATIONS_SEND}

    def get(self, request):
        params = request.query_params
        try:
            limit = int_param(params, "limit", 20, minimum=1, maximum=100)
            offset = int_param(params, "offset", 0)
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        qs = Notification.objects.filter(user=request.user)
        if flag_param(params, "unread_only"):
            qs = qs.filter(read_at__isnull=True)
        kind = (params.get("type") or "").strip()
        if kind:
            qs = qs.filter(type=kind)

        total = qs.count()
        unread = Notification.objects.filter(user=request.user, read_at__isnull=True).count()
        rows = qs.order_by("-created_at", "-id")[offset : offset + limit]

        return Response(
            {
                "results": NotificationSerializer(rows, many=True).data,
                "pagination": {
                    "total": total,
                    "unread": unread,
                    "limit": limit,
                    "offset": offset,
                    "has_more": total > offset + limit,
                },
            }
        )

    def post(self, request):
        serializer = NotificationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if data.get("target_user_id"):
            users = list(User.objects.filter(pk=data["target_user_id"], is_active=True))
        elif data.get("target_user_ids"):
            users = list(User.objects.filter(pk__in=data["target_user_ids"], is_active=True))
        else:
            users = list(users_with_role(data["target_role"]))

        if not users:
            return Response({"detail": "No active users matched the target"}, status=status.HTTP_400_BAD_REQUEST)

        expires_at = None
        if data.get("expires_in"):
            expires_at = timezone.now() + timedelta(minutes=data["expires_in"])

        results = notify_users(
            users,
            type=data["type"],
            title=data["title"],
            message=data["message"],
            data=data["data"],
            priority=data["priority"],
            expires_at=expires_at,
        )
        sent = sum(1 for r in results if r["success"])
        return Response(
            {
                "detail": f"Notification sent to {sent} users",
                "results": results,
                "summary": {"total": len(results), "successful": sent, "failed": len(results) - sent},
            },
            status=status.HTTP_201_CREATED,
        )


class NotificationReadView(APIView):
    def put(self, request, pk):
        if not mark_read(user=request.user, notification_id=pk):
            return Response({"detail": "Notification not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response({"detail": "Notification marked as read"})

    patch = put
    post = put


class NotificationReadAllView(APIView):
    def put(self, request):
        count = mark_all_read(user=request.user)
        return Response({"detail": f"{count} notifications marked as read", "count": count})

    post = put


class NotificationDetailView(APIView):
    def delete(self, request, pk):
        deleted, _ = Notification.objects.filter(pk=pk, user=request.user).delete()
        if not deleted:
            return Response({"detail": "Notification not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response(status=status.HTTP_204_NO_CONTENT)


class NotificationPreferenceView(APIView):
    def get(self, request):
        pref = NotificationPreference.objects.filter(user=request.user).first()
        return Response({"preferences": pref.preferences if pref else default_preferences()})

    def put(self, request):
        serializer = PreferencesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        merged = default_preferences()
        pref = NotificationPreference.objects.filter(user=request.user).first()
        if pref:
            for channel, topics in pref.preferences.items():
                merged.setdefault(channel, {}).update(topics)
        for channel, topics in serializer.validated_data["preferences"].items():
            merged[channel].update(topics)

        NotificationPreference.objects.update_or_create(user=request.user, defaults={"preferences": merged})
        return Response({"detail": "Notification preferences updated", "preferences": merged})

    patch = put


class NotificationStatsView(APIView):
    def get(self, request):
        try:
            days = int_param(request.query_params, "days", 30, minimum=1, maximum=365)
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        since = timezone.now() - timedelta(days=days)
        qs = Notification.objects.filter(user=request.user, created_at__gte=since)

        summary = qs.aggregate(
            total=Count("id"),
            unread=Count("id", filter=Q(read_at__isnull=True)),
            read=Count("id", filter=Q(read_at__isnull=False)),
            mentions=Count("id", filter=Q(type="mention")),
            dispatches=Count("id", filter=Q(type="dispatch_created")),
            low_stock_alerts=Count("id", filter=Q(type="low_stock_alert")),
            high_priority=Count("id", filter=Q(priority=Notification.Priority.HIGH)),
            urgent=Count("id", filter=Q(priority=Notification.Priority.URGENT)),
        )

        daily = (
            qs.annotate(date=TruncDate("created_at"))
            .values("date")
            .annotate(count=Count("id"), read_count=Count("id", filter=Q(read_at__isnull=False)))
            .order_by("-date")
        )

        return Response(
            {
                "summary": summary,
                "daily": [
                    {"date": row["date"].isoformat(), "count": row["count"], "read_count": row["read_count"]}
                    for row in daily
                ],
                "period_days": days,
            }
        )


class NotificationTestView(APIView):
    def post(self, request):
        row = notify_user(
            request.user,
            type=(request.data.get("type") or "test"),
            title=(request.data.get("title") or "Test Notification"),
            message=(request.data.get("message") or "This is a test notification"),
            data={"is_test": True, "timestamp": timezone.now().isoformat()},
            priority=Notification.Priority.LOW,
        )
        payload = NotificationSerializer(row).data if row is not None else None
        return Response({"detail": "Test notification sent", "notification": payload}, status=status.HTTP_201_CREATED)


class ConnectedUsersView(CapabilityViewMixin, APIView):
    default_capability = CAP_SYSTEM_MONITORING

    def get(self, request):
        sessions = UserSession.objects.filter(is_active=True).select_related("user", "user__role")
        data = UserSessionSerializer(sessions, many=True).data
        return Response(
            {
                "connected_users": data,
                "connected_count": len({row["user_id"] for row in data}),
                "session_count": len(data),
                "timestamp": timezone.now().isoformat(),
            }
        )
