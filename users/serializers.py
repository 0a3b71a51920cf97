"""Serializers for user profiles and user management.

- UserMeSerializer: the caller's profile plus the navigation tabs their role unlocks.
- UserSerializer: a managed user with their holder-group memberships.
- UserInputSerializer: request shape for creating or editing a user.
"""

from catalog.models import IHMember
from common.choices import UserRole
from rest_framework import serializers

from .models import User
from .permissions import available_tabs


class MembershipSerializer(serializers.ModelSerializer):
    ih_id = serializers.CharField(source="ih.ih_id", read_only=True)
    ih_name = serializers.CharField(source="ih.ih_name", read_only=True)
    ih_type = serializers.CharField(source="ih.ih_type", read_only=True)

    class Meta:
        model = IHMember
        fields = ["ih_id", "ih_name", "ih_type", "is_primary"]


class UserMeSerializer(serializers.ModelSerializer):
    """Profile fields for the authenticated user and the tabs their role can open."""

    name = serializers.CharField(source="display_name", read_only=True)
    tabs = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ["id", "username", "name", "first_name", "last_name", "role", "nusnet_id", "telegram_handle", "tabs"]

    def get_tabs(self, obj: User) -> list[dict]:
        return available_tabs(obj.role)


class UserSerializer(serializers.ModelSerializer):
    groups = MembershipSerializer(source="ih_memberships", many=True, read_only=True)

    class Meta:
        model = User
        fields = ["id", "first_name", "last_name", "role", "nusnet_id", "telegram_handle", "groups"]


class UserInputSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150, required=False, allow_blank=True, allow_null=True)
    nusnet = serializers.CharField(max_length=16, required=False, allow_blank=True, allow_null=True)
    telegram_handle = serializers.CharField(max_length=64)
    role = serializers.ChoiceField(choices=UserRole.choices, required=False)
    group_ids = serializers.ListField(child=serializers.CharField(max_length=80), required=False)
