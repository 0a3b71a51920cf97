import pytest
from catalog.tests.factories import InventoryHolderFactory
from common.choices import UserRole
from django.urls import reverse
from rest_framework.test import APIClient
from users.models import User
from users.tests.factories import AdminUserFactory, LogsUserFactory, UserFactory

pytestmark = pytest.mark.django_db


def _client(user=None):
    client = APIClient()
    if user is not None:
        client.force_authenticate(user=user)
    return client


def test_me_returns_profile_and_tabs():
    user = LogsUserFactory(first_name="Lee", last_name="Tan")

    r = _client(user).get(reverse("users:me"))

    assert r.status_code == 200
    body = r.json()
    assert body["name"] == "Lee Tan"
    assert body["role"] == UserRole.LOGS
    assert [tab["name"] for tab in body["tabs"]] == ["CATALOGUE", "LOANS", "USERS"]


def test_me_requires_authentication():
    assert _client().get(reverse("users:me")).status_code in (401, 403)


def test_user_list_visible_to_logistics_but_not_requesters():
    UserFactory(first_name="Zebedee")

    listed = _client(LogsUserFactory()).get(reverse("users:user-list"), {"search": "zebedee"})
    denied = _client(UserFactory()).get(reverse("users:user-list"))

    assert listed.status_code == 200
    assert [u["first_name"] for u in listed.json()["results"]] == ["Zebedee"]
    assert denied.status_code == 403


def test_admin_creates_updates_and_deletes_user():
    InventoryHolderFactory(ih_id="band")
    client = _client(AdminUserFactory())
    payload = {"first_name": "Ann", "nusnet": "E5555555", "telegram_handle": "@Ann", "group_ids": ["band"]}

    created = client.post(reverse("users:user-list"), payload, format="json")
    assert created.status_code == 201
    body = created.json()
    assert body["telegram_handle"] == "ann"
    assert [g["ih_id"] for g in body["groups"]] == ["band"]

    url = reverse("users:user-detail", args=[body["id"]])
    updated = client.patch(url, {**payload, "role": UserRole.IH, "group_ids": []}, format="json")
    assert updated.status_code == 200
    assert updated.json()["role"] == UserRole.IH
    assert updated.json()["groups"] == []

    assert client.delete(url).status_code == 204
    assert not User.objects.filter(pk=body["id"]).exists()
    assert client.get(url).status_code == 404


def test_duplicate_handle_is_conflict():
    UserFactory(telegram_handle="ann")

    r = _client(AdminUserFactory()).post(
        reverse("users:user-list"), {"first_name": "Ann", "telegram_handle": "@ANN"}, format="json"
    )

    assert r.status_code == 409
    assert r.json()["detail"] == "User with Telegram handle @ann already exists."


def test_logistics_cannot_create_users():
    r = _client(LogsUserFactory()).post(
        reverse("users:user-list"), {"first_name": "Ann", "telegram_handle": "ann"}, format="json"
    )

    assert r.status_code == 403


def test_admin_cannot_delete_peer_admin():
    peer = AdminUserFactory()

    r = _client(AdminUserFactory()).delete(reverse("users:user-detail", args=[peer.id]))

    assert r.status_code == 403
    assert User.objects.filter(pk=peer.id).exists()
