# notifications/serializers.py

from rest_framework import serializers

from notifications.models import DEFAULT_PREFERENCES, Notification, UserSession


class NotificationSerializer(serializers.ModelSerializer):
    is_read = serializers.BooleanField(read_only=True)
    is_expired = serializers.BooleanField(read_only=True)

    class Meta:
        model = Notification
        fields = [
            "id",
            "type",
            "title",
            "message",
            "data",
            "priority",
            "read_at",
            "delivered_at",
            "expires_at",
            "created_at",
            "is_read",
            "is_expired",
        ]
        read_only_fields = fields


class NotificationCreateSerializer(serializers.Serializer):
    """Exactly one target: target_user_id, target_user_ids or target_role."""

    target_user_id = serializers.UUIDField(required=False)
    target_user_ids = serializers.ListField(child=serializers.UUIDField(), required=False, allow_empty=False)
    target_role = serializers.CharField(required=False, allow_blank=False)
    type = serializers.CharField(required=False, default="info", max_length=50)
    title = serializers.CharField(max_length=255)
    message = serializers.CharField()
    data = serializers.DictField(required=False, default=dict)
    priority = serializers.ChoiceField(choices=Notification.Priority.choices, default=Notification.Priority.MEDIUM)
    expires_in = serializers.IntegerField(required=False, min_value=1, help_text="Minutes until expiry")

    def validate(self, attrs):
        targets = [k for k in ("target_user_id", "target_user_ids", "target_role") if attrs.get(k)]
        if not targets:
            raise serializers.ValidationError("Target user(s) or role must be specified")
        if len(targets) > 1:
            raise serializers.ValidationError("Specify only one of target_user_id, target_user_ids, target_role")
        return attrs


class PreferencesSerializer(serializers.Serializer):
    preferences = serializers.DictField()

    def validate_preferences(self, value):
        unknown = set(value) - set(DEFAULT_PREFERENCES)
        if unknown:
            raise serializers.ValidationError(f"Unknown channels: {', '.join(sorted(unknown))}")
        for channel, topics in value.items():
            if not isinstance(topics, dict):
                raise serializers.ValidationError(f"{channel} must be an object of topic: bool")
            bad = set(topics) - set(DEFAULT_PREFERENCES[channel])
            if bad:
                raise serializers.ValidationError(f"Unknown topics for {channel}: {', '.join(sorted(bad))}")
            if not all(isinstance(v, bool) for v in topics.values()):
                raise serializers.ValidationError(f"{channel} values must be true/false")
        return value


class UserSessionSerializer(serializers.ModelSerializer):
    user_id = serializers.CharField(source="user.pk", read_only=True)
    username = serializers.CharField(source="user.username", read_only=True)
    name = serializers.CharField(source="user.display_name", read_only=True)
    role = serializers.CharField(source="user.role_name", read_only=True, allow_null=True)

    class Meta:
        model = UserSession
        fields = [
            "session_id",
            "user_id",
            "username",
            "name",
            "role",
            "ip_address",
            "user_agent",
            "connected_at",
            "last_activity",
        ]
        read_only_fields = fields
