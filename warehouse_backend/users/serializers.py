# users/serializers.py

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers

from permissions.models import Role
from permissions.roles import effective_capabilities_for

User = get_user_model()


# ---------------- LOGIN (INPUT ONLY) ----------------
class LoginSerializer(serializers.Serializer):
    """
    Input validation only. Authentication is handled in the view.

    Accepts ONE identifier: `email` or `username` (or the generic `identifier`).
    """

    identifier = serializers.CharField(required=False, allow_blank=True)
    email = serializers.CharField(required=False, allow_blank=True)
    username = serializers.CharField(required=False, allow_blank=True)
    password = serializers.CharField(write_only=True, style={"input_type": "password"})

    def validate(self, attrs):
        email = (attrs.get("email") or "").strip()
        username = (attrs.get("username") or "").strip()
        identifier = (attrs.get("identifier") or "").strip()

        if email and username:
            raise serializers.ValidationError("Provide either email or username, not both.")

        ident = identifier or email or username
        if not ident:
            raise serializers.ValidationError("email or username is required.")

        attrs["ident"] = ident
        return attrs


class LogoutSerializer(serializers.Serializer):
    refresh = serializers.CharField()


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True, validators=[validate_password])


# ---------------- USER OUTPUT ----------------
class UserSerializer(serializers.ModelSerializer):
    """
    Safe user representation for frontend consumption.
    """

    role = serializers.CharField(source="role_name", read_only=True, default=None)
    role_display = serializers.CharField(source="role.display_name", read_only=True, default=None)
    name = serializers.CharField(source="display_name", read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "username",
            "name",
            "first_name",
            "last_name",
            "phone",
            "role",
            "role_display",
            "is_active",
            "last_login",
            "created_at",
        ]
        read_only_fields = fields


class UserProfileSerializer(UserSerializer):
    capabilities = serializers.SerializerMethodField()

    class Meta(UserSerializer.Meta):
        fields = UserSerializer.Meta.fields + ["capabilities"]
        read_only_fields = fields

    def get_capabilities(self, obj) -> list[str]:
        return sorted(effective_capabilities_for(obj))


class ProfileUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["username", "first_name", "last_name", "phone"]


# ---------------- USER MANAGEMENT (ADMIN) ----------------
class _RoleField(serializers.SlugRelatedField):
    def __init__(self, **kwargs):
        kwargs.setdefault("slug_field", "name")
        kwargs.setdefault("queryset", Role.objects.filter(is_active=True))
        super().__init__(**kwargs)


class UserCreateSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password])
    role = _RoleField(required=False, allow_null=True)
    username = serializers.CharField(required=False, allow_blank=True)

    class Meta:
        model = User
        fields = ["email", "username", "password", "first_name", "last_name", "phone", "role"]

    def create(self, validated_data):
        password = validated_data.pop("password")
        email = validated_data.pop("email")
        return User.objects.create_user(email=email, password=password, **validated_data)


class UserUpdateSerializer(serializers.ModelSerializer):
    role = _RoleField(required=False, allow_null=True)
    password = serializers.CharField(write_only=True, required=False, validators=[validate_password])

    class Meta:
        model = User
        fields = ["email", "username", "first_name", "last_name", "phone", "role", "is_active", "password"]

    def update(self, instance, validated_data):
        password = validated_data.pop("password", None)
        instance = super().update(instance, validated_data)
        if password:
            instance.set_password(password)
            instance.save(update_fields=["password"])
        return instance


class RoleChangeSerializer(serializers.Serializer):
    role = _RoleField()
