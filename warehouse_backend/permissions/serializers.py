# permissions/serializers.py

from __future__ import annotations

from rest_framework import serializers

from permissions.models import Capability, Role


class CapabilitySerializer(serializers.ModelSerializer):
    class Meta:
        model = Capability
        fields = ["id", "code", "module", "description", "is_active"]
        read_only_fields = ["id", "code", "module"]


class RoleSerializer(serializers.ModelSerializer):
    capabilities = serializers.SlugRelatedField(
        many=True,
        slug_field="code",
        queryset=Capability.objects.all(),
        required=False,
    )
    user_count = serializers.IntegerField(read_only=True, default=0)

    class Meta:
        model = Role
        fields = [
            "id",
            "name",
            "display_name",
            "description",
            "is_system",
            "is_active",
            "capabilities",
            "user_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "is_system", "user_count", "created_at", "updated_at"]

    def validate_name(self, value):
        value = (value or "").strip().lower()
        instance = getattr(self, "instance", None)
        if instance is not None and instance.is_system and value != instance.name:
            raise serializers.ValidationError("System roles cannot be renamed.")
        return value


class CapabilityCodeSerializer(serializers.Serializer):
    capability = serializers.SlugRelatedField(slug_field="code", queryset=Capability.objects.all())


class CapabilityCodesSerializer(serializers.Serializer):
    capabilities = serializers.SlugRelatedField(
        many=True, slug_field="code", queryset=Capability.objects.all()
    )
