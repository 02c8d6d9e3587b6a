# messaging/admin.py

from django.contrib import admin

from messaging.models import Channel, Mention, Message


@admin.register(Channel)
class ChannelAdmin(admin.ModelAdmin):
    list_display = ("name", "display_name", "is_private", "is_active", "created_at")
    list_filter = ("is_private", "is_active")
    search_fields = ("name", "display_name")


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ("created_at", "sender", "channel", "recipient", "message_type", "is_active")
    list_filter = ("message_type", "is_active", "channel")
    search_fields = ("message", "sender__username")


@admin.register(Mention)
class MentionAdmin(admin.ModelAdmin):
    list_display = ("created_at", "mentioned_by", "mentioned_user", "read_at")
