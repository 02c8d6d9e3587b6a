# messaging/serializers.py

from django.contrib.auth import get_user_model
from rest_framework import serializers

from messaging.models import Channel, Message, Mention

User = get_user_model()


class UserBriefSerializer(serializers.ModelSerializer):
    name = serializers.CharField(source="display_name", read_only=True)
    role = serializers.CharField(source="role_name", read_only=True)

    class Meta:
        model = User
        fields = ["id", "username", "email", "name", "role"]
        read_only_fields = fields


class ChannelSerializer(serializers.ModelSerializer):
    message_count = serializers.IntegerField(read_only=True, default=0)

    class Meta:
        model = Channel
        fields = [
            "id",
            "name",
            "display_name",
            "description",
            "is_private",
            "is_active",
            "message_count",
            "created_at",
        ]
        read_only_fields = ["id", "is_active", "message_count", "created_at"]


class MessageSerializer(serializers.ModelSerializer):
    sender = UserBriefSerializer(read_only=True)
    recipient_id = serializers.UUIDField(read_only=True)
    channel_name = serializers.CharField(source="channel.name", read_only=True, default=None)
    mentioned_users = serializers.SerializerMethodField()

    class Meta:
        model = Message
        fields = [
            "id",
            "channel",
            "channel_name",
            "sender",
            "recipient_id",
            "message",
            "message_type",
            "file_data",
            "voice_duration",
            "mentioned_users",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_mentioned_users(self, obj):
        return [m.mentioned_user.username for m in obj.mentions.all()]


class MessageInputSerializer(serializers.Serializer):
    message = serializers.CharField(max_length=5000, trim_whitespace=True)
    message_type = serializers.ChoiceField(choices=Message.MessageType.choices, default=Message.MessageType.TEXT)
    file_data = serializers.JSONField(required=False, allow_null=True, default=None)
    voice_duration = serializers.IntegerField(required=False, allow_null=True, min_value=0, default=None)


class ChannelMessageInputSerializer(MessageInputSerializer):
    """Channel by id or by name."""

    channel_id = serializers.IntegerField(required=False)
    channel = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        if not attrs.get("channel_id") and not (attrs.get("channel") or "").strip():
            raise serializers.ValidationError("channel_id or channel is required")
        return attrs


class DirectMessageInputSerializer(MessageInputSerializer):
    recipient_id = serializers.UUIDField()


class MentionSerializer(serializers.ModelSerializer):
    mentioned_by = UserBriefSerializer(read_only=True)
    message_id = serializers.IntegerField(read_only=True)
    channel_name = serializers.CharField(source="message.channel.name", read_only=True, default=None)
    message_text = serializers.CharField(source="message.message", read_only=True)
    is_read = serializers.SerializerMethodField()

    class Meta:
        model = Mention
        fields = [
            "id",
            "message_id",
            "channel_name",
            "message_text",
            "mentioned_by",
            "context",
            "is_read",
            "read_at",
            "created_at",
        ]
        read_only_fields = fields

    def get_is_read(self, obj):
        return obj.read_at is not None


class ParseMentionsSerializer(serializers.Serializer):
    text = serializers.CharField(allow_blank=True, trim_whitespace=False)
