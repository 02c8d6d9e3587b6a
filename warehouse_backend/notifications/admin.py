# notifications/admin.py

from django.contrib import admin

from notifications.models import Notification, NotificationPreference, UserSession


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("created_at", "user", "type", "title", "priority", "read_at")
    list_filter = ("type", "priority")
    search_fields = ("title", "message", "user__email")


@admin.register(NotificationPreference)
class NotificationPreferenceAdmin(admin.ModelAdmin):
    list_display = ("user", "updated_at")


@admin.register(UserSession)
class UserSessionAdmin(admin.ModelAdmin):
    list_display = ("user", "session_id", "is_active", "connected_at", "last_activity")
    list_filter = ("is_active",)
