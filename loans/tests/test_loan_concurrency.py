import threading
from typing import List

import pytest
from catalog.tests.factories import ItemFactory
from common.choices import LoanItemStatus
from django.db import close_old_connections, connection
from inventory.selectors import stock_for_item
from loans.services import approve_loan
from loans.tests.factories import LoanItemDetailFactory
from users.tests.factories import LogsUserFactory


def _approve_worker(barrier: threading.Barrier, actor, ref_no: int, results: List, errors: List[Exception]):
    # Ensure this thread uses its own DB connection
    close_old_connections()
    barrier.wait()
    try:
        results.append(approve_loan(actor, ref_no))
    except Exception as exc:  # pragma: no cover
        errors.append(exc)
    finally:
        connection.close()


@pytest.mark.django_db(transaction=True)
def test_threaded_competing_approvals_cannot_overcommit():
    if connection.vendor == "sqlite":
        pytest.skip("SQLite lacks real concurrent transactions; skipping threaded test.")
    actor = LogsUserFactory()
    item = ItemFactory(item_qty=3, item_expendable=False)
    first = LoanItemDetailFactory(item=item, loan_qty=2).loan_request
    second = LoanItemDetailFactory(item=item, loan_qty=2).loan_request

    barrier = threading.Barrier(2)
    results: List = []
    errors: List[Exception] = []

    t1 = threading.Thread(target=_approve_worker, args=(barrier, actor, first.ref_no, results, errors))
    t2 = threading.Thread(target=_approve_worker, args=(barrier, actor, second.ref_no, results, errors))
    t1.start()
    t2.start()
    t1.join()
    t2.join()

    assert errors == []
    # Exactly one approval wins; the loser sees the winner's ON_LOAN line
    assert sorted(r.success for r in results) == [False, True]
    loser = next(r for r in results if not r.success)
    assert "Insufficient stock" in loser.error
    figures = stock_for_item(item)
    assert figures.on_loan == 2
    assert figures.on_loan <= figures.item_qty


@pytest.mark.django_db
def test_sequential_approvals_respect_on_loan_capacity():
    actor = LogsUserFactory()
    item = ItemFactory(item_qty=3)
    first = LoanItemDetailFactory(item=item, loan_qty=2)
    second = LoanItemDetailFactory(item=item, loan_qty=2)

    assert approve_loan(actor, first.loan_request_id).success
    assert not approve_loan(actor, second.loan_request_id).success

    second.refresh_from_db()
    assert second.loan_status == LoanItemStatus.PENDING
    assert stock_for_item(item).on_loan == 2
