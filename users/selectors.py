"""Read helpers for the users domain."""

from typing import Optional

from catalog.models import IHMember
from django.db.models import Prefetch, Q, QuerySet

from .models import User


def list_users(*, search: Optional[str] = None, role: Optional[str] = None) -> QuerySet[User]:
    """Return users ordered by first name with their holder memberships prefetched."""

    qs = User.objects.prefetch_related(
        Prefetch("ih_memberships", queryset=IHMember.objects.select_related("ih").order_by("ih__ih_name"))
    )
    if role:
        qs = qs.filter(role=role)
    if search:
        term = search.strip()
        qs = qs.filter(
            Q(first_name__icontains=term)
            | Q(last_name__icontains=term)
            | Q(nusnet_id__icontains=term)
            | Q(telegram_handle__icontains=term.lstrip("@"))
        )
    return qs.order_by("first_name", "id")


def get_user(user_id) -> Optional[User]:
    try:
        return list_users().get(pk=int(user_id))
    except (User.DoesNotExist, ValueError, TypeError):
        return None
