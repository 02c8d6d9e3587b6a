# messaging/models.py

"""
TEAM MESSAGING

Channel   named room (unique slug); soft-deactivated, never deleted
Message   channel message (channel set, recipient NULL) or direct message
          (channel NULL, recipient set); soft delete via is_active
Mention   one row per @username resolved in a message
"""

from django.conf import settings
from django.db import models


class Channel(models.Model):
    name = models.SlugField(max_length=100, unique=True)
    display_name = models.CharField(max_length=150)
    description = models.TextField(blank=True)
    is_private = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="channels_created",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return f"#{self.name}"


class Message(models.Model):
    class MessageType(models.TextChoices):
        TEXT = "text", "Text"
        VOICE = "voice", "Voice"
        FILE = "file", "File"

    channel = models.ForeignKey(
        Channel, on_delete=models.CASCADE, null=True, blank=True, related_name="messages"
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="messages_sent"
    )
    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="messages_received",
    )

    message = models.TextField()
    message_type = models.CharField(max_length=10, choices=MessageType.choices, default=MessageType.TEXT)
    file_data = models.JSONField(null=True, blank=True)
    voice_duration = models.PositiveIntegerField(null=True, blank=True, help_text="Seconds")

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["channel", "created_at"], name="message_channel_idx"),
            models.Index(fields=["sender", "recipient", "created_at"], name="message_direct_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(channel__isnull=False, recipient__isnull=True)
                    | models.Q(channel__isnull=True, recipient__isnull=False)
                ),
                name="chk_message_channel_xor_recipient",
            ),
        ]

    @property
    def is_direct(self) -> bool:
        return self.channel_id is None

    def __str__(self):
        target = f"#{self.channel_id}" if self.channel_id else f"@{self.recipient_id}"
        return f"{self.sender_id} -> {target}: {self.message[:40]}"


class Mention(models.Model):
    message = models.ForeignKey(Message, on_delete=models.CASCADE, related_name="mentions")
    mentioned_user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="mentions_received"
    )
    mentioned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="mentions_sent"
    )
    context = models.TextField(blank=True)
    read_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(fields=["message", "mentioned_user"], name="uniq_mention_per_message"),
        ]

    def __str__(self):
        return f"{self.mentioned_by_id} @ {self.mentioned_user_id}"
