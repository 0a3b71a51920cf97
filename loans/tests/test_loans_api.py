import datetime as dt

import pytest
from catalog.tests.factories import ItemFactory
from common.choices import LoanItemStatus, RequestStatus
from django.urls import reverse
from django.utils import timezone
from loans.models import LoanItemDetail, LoanRequest
from loans.tests.factories import LoanItemDetailFactory, LoanRequestFactory
from rest_framework.test import APIClient
from users.tests.factories import LogsUserFactory, UserFactory

pytestmark = pytest.mark.django_db


@pytest.fixture
def logs_client():
    client = APIClient()
    client.force_authenticate(user=LogsUserFactory())
    return client


def _payload(*lines, **extra):
    today = timezone.localdate()
    return {
        "loan_date_start": today.isoformat(),
        "loan_date_end": (today + dt.timedelta(days=2)).isoformat(),
        "items": [{"item_id": item.item_id, "loan_qty": qty} for item, qty in lines],
        **extra,
    }


def test_create_and_fetch_loan(logs_client):
    requester = UserFactory()
    item = ItemFactory(item_qty=4)

    r = logs_client.post(reverse("loans:loan-list"), _payload((item, 2), requester_id=requester.id), format="json")

    assert r.status_code == 201
    body = r.json()
    assert body["request_status"] == RequestStatus.PENDING
    assert body["requester"]["id"] == requester.id
    assert body["details"][0]["loan_qty"] == 2
    assert body["summary"]["by_status"][LoanItemStatus.PENDING] == 1

    detail = logs_client.get(reverse("loans:loan-detail", args=[body["ref_no"]]))
    assert detail.status_code == 200
    assert detail.json()["ref_no"] == body["ref_no"]


def test_create_with_new_requester(logs_client):
    item = ItemFactory(item_qty=4)
    payload = _payload((item, 1), new_requester={"first_name": "Ann", "nusnet": "E2222222", "telegram_handle": "@Ann"})

    r = logs_client.post(reverse("loans:loan-list"), payload, format="json")

    assert r.status_code == 201
    assert r.json()["requester"]["telegram_handle"] == "ann"


def test_create_maps_errors_to_status_codes(logs_client):
    requester = UserFactory()
    item = ItemFactory(item_qty=1)
    url = reverse("loans:loan-list")

    short = logs_client.post(url, _payload((item, 5), requester_id=requester.id), format="json")
    assert short.status_code == 409
    assert "Insufficient stock" in short.json()["detail"]

    zero = logs_client.post(url, _payload((item, 0), requester_id=requester.id), format="json")
    assert zero.status_code == 400
    assert "items" in zero.json()["errors"]

    malformed = logs_client.post(url, {"items": "nope"}, format="json")
    assert malformed.status_code == 400
    assert LoanRequest.objects.count() == 0


def test_requesters_cannot_use_loan_endpoints():
    client = APIClient()
    client.force_authenticate(user=UserFactory())
    loan = LoanRequestFactory()

    assert client.get(reverse("loans:loan-list")).status_code == 403
    assert client.post(reverse("loans:loan-approve", args=[loan.ref_no])).status_code == 403


def test_anonymous_is_rejected():
    r = APIClient().get(reverse("loans:loan-list"))
    assert r.status_code in {401, 403}


def test_list_filters_by_status_and_search(logs_client):
    pending = LoanRequestFactory(organisation="Zephyrine Band")
    ongoing = LoanRequestFactory(request_status=RequestStatus.ONGOING, organisation="Dance Club")

    r = logs_client.get(reverse("loans:loan-list"), {"status": RequestStatus.ONGOING})
    assert [row["ref_no"] for row in r.json()["results"]] == [ongoing.ref_no]

    r = logs_client.get(reverse("loans:loan-list"), {"search": "zephyrine"})
    assert [row["ref_no"] for row in r.json()["results"]] == [pending.ref_no]

    r = logs_client.get(reverse("loans:loan-list"), {"search": str(ongoing.ref_no)})
    assert ongoing.ref_no in [row["ref_no"] for row in r.json()["results"]]

    r = logs_client.get(reverse("loans:loan-list"), {"organisation": "dance"})
    assert [row["ref_no"] for row in r.json()["results"]] == [ongoing.ref_no]


def test_approve_reject_and_not_pending_conflict(logs_client):
    item = ItemFactory(item_qty=5)
    to_approve = LoanItemDetailFactory(item=item, loan_qty=2).loan_request
    to_reject = LoanItemDetailFactory(item=item, loan_qty=1).loan_request

    approved = logs_client.post(reverse("loans:loan-approve", args=[to_approve.ref_no]))
    assert approved.status_code == 200
    assert approved.json()["request_status"] == RequestStatus.ONGOING

    again = logs_client.post(reverse("loans:loan-approve", args=[to_approve.ref_no]))
    assert again.status_code == 409
    assert again.json()["detail"] == "Loan is not pending"

    rejected = logs_client.post(reverse("loans:loan-reject", args=[to_reject.ref_no]))
    assert rejected.status_code == 200
    assert rejected.json()["details"][0]["loan_status"] == LoanItemStatus.REJECTED

    missing = logs_client.post(reverse("loans:loan-approve", args=[987654]))
    assert missing.status_code == 404


def test_update_and_delete_endpoints(logs_client):
    item = ItemFactory(item_qty=5)
    loan = LoanItemDetailFactory(item=item, loan_qty=1).loan_request
    url = reverse("loans:loan-detail", args=[loan.ref_no])

    r = logs_client.patch(url, _payload((item, 3), event_location="MPH"), format="json")
    assert r.status_code == 200
    assert r.json()["event_location"] == "MPH"
    assert [d["loan_qty"] for d in r.json()["details"]] == [3]

    r = logs_client.delete(url)
    assert r.status_code == 204
    assert not LoanRequest.objects.filter(ref_no=loan.ref_no).exists()


def test_return_endpoint_completes_and_is_idempotent(logs_client):
    loan = LoanRequestFactory(request_status=RequestStatus.ONGOING)
    line = LoanItemDetailFactory(loan_request=loan, loan_status=LoanItemStatus.ON_LOAN)
    url = reverse("loans:loan-item-return", args=[line.loan_detail_id])

    first = logs_client.post(url)
    assert first.status_code == 200
    assert first.json()["request_status"] == RequestStatus.COMPLETED

    second = logs_client.post(url)
    assert second.status_code == 200
    assert second.json()["already_returned"] is True
    assert LoanItemDetail.objects.get(pk=line.pk).loan_status == LoanItemStatus.RETURNED
