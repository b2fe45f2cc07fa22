"""User DRF serializers (read-only directory views)."""

from __future__ import annotations

from rest_framework import serializers

from modules.accounts.models import User


class UserSerializer(serializers.ModelSerializer):
    name = serializers.CharField(source="display_name", read_only=True)

    class Meta:
        model = User
        fields = ["id", "username", "name", "email", "role", "is_active"]
        read_only_fields = fields
