"""Admin registration for the custom User model.

Uses Django's built-in `UserAdmin` to manage the `users.User` model
in the admin interface.
"""

from catalog.models import IHMember
from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import User


class HolderMembershipInline(admin.TabularInline):
    model = IHMember
    extra = 0
    fields = ("ih", "is_primary")


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin configuration leveraging the default fieldsets and filters.

    Adds the role and the NUSNET / Telegram identifiers, and shows the
    user's inventory holder memberships inline.
    """

    list_display = (
        "username",
        "first_name",
        "last_name",
        "role",
        "nusnet_id",
        "telegram_handle",
        "is_active",
        "last_login",
    )
    list_filter = ("role", "is_staff", "is_superuser", "is_active")
    search_fields = ("username", "first_name", "last_name", "nusnet_id", "telegram_handle")
    ordering = ("first_name", "id")
    readonly_fields = ("last_login", "date_joined")
    inlines = [HolderMembershipInline]

    fieldsets = (
        (None, {"fields": ("username", "password")}),
        (
            "Personal info",
            {"fields": ("first_name", "last_name", "email", "photo_url")},
        ),
        (
            "Club identity",
            {"fields": ("role", "nusnet_id", "telegram_handle", "telegram_id")},
        ),
        (
            "Permissions",
            {"fields": ("is_active", "is_staff", "is_superuser", "groups", "user_permissions")},
        ),
        ("Important dates", {"fields": ("last_login", "date_joined")}),
    )

    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("username", "role", "nusnet_id", "telegram_handle", "password1", "password2"),
            },
        ),
    )

    filter_horizontal = ("groups", "user_permissions")
