"""User models for identity and role management.

This module defines the custom `User` model which extends Django's
`AbstractUser` with the role used by the authorization gate and the
external identifiers a club member is known by (NUSNET id and Telegram).
"""

from common.choices import UserRole
from django.contrib.auth.models import AbstractUser
from django.db import models


def normalize_telegram_handle(handle: str | None) -> str | None:
    """Strip whitespace and a leading "@", then lowercase. Blank becomes None."""
    if handle is None:
        return None
    value = handle.strip()
    if value.startswith("@"):
        value = value[1:]
    value = value.strip().lower()
    return value or None


class User(AbstractUser):
    """Club member with a role in the logistics hierarchy.

    Fields:
    - role: REQUESTER, IH, LOGS or ADMIN; drives every permission check.
    - nusnet_id: university account id, unique when present.
    - telegram_handle: normalized handle (no "@", lowercase), unique when present.
    - telegram_id: numeric Telegram id set by the login provider.
    """

    ROLE_REQUESTER = UserRole.REQUESTER
    ROLE_IH = UserRole.IH
    ROLE_LOGS = UserRole.LOGS
    ROLE_ADMIN = UserRole.ADMIN
    ROLE_CHOICES = UserRole.choices

    role = models.CharField(max_length=16, choices=ROLE_CHOICES, default=ROLE_REQUESTER)
    nusnet_id = models.CharField(max_length=16, null=True, blank=True, unique=True)
    telegram_handle = models.CharField(max_length=64, null=True, blank=True, unique=True)
    telegram_id = models.BigIntegerField(null=True, blank=True, unique=True)
    photo_url = models.URLField(blank=True)

    def save(self, *args, **kwargs):
        """Normalize identifiers and persist.

        Keeps `telegram_handle` and `nusnet_id` in canonical form so the
        uniqueness constraints are reliable.
        """
        self.telegram_handle = normalize_telegram_handle(self.telegram_handle)
        if self.nusnet_id:
            self.nusnet_id = self.nusnet_id.strip() or None
        else:
            self.nusnet_id = None
        super().save(*args, **kwargs)

    @property
    def display_name(self) -> str:
        full = f"{self.first_name} {self.last_name}".strip()
        return full or self.username

    class Meta:
        ordering = ["first_name", "id"]
        indexes = [
            models.Index(fields=["role"], name="user_role_idx"),
        ]
