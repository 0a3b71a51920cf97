import pytest
from catalog import selectors
from catalog.tests.factories import IHMemberFactory, InventoryHolderFactory, ItemFactory, SlocFactory
from common.choices import LoanItemStatus
from loans.tests.factories import LoanItemDetailFactory

pytestmark = pytest.mark.django_db


def _ids(qs):
    return [item.item_id for item in qs]


def test_search_matches_text_fields_and_exact_id():
    shed = SlocFactory(sloc_id="quokka-shed", sloc_name="Quokka Shed")
    band = InventoryHolderFactory(ih_id="zephyr-band", ih_name="Zephyr Band")
    by_desc = ItemFactory(item_desc="Marimba Stand")
    by_remarks = ItemFactory(item_desc="Stand", item_remarks="spare marimba mallets")
    by_sloc = ItemFactory(item_desc="Crate", item_sloc=shed)
    by_holder = ItemFactory(item_desc="Drum", item_ih=band)
    ItemFactory(item_desc="Unrelated")

    assert set(_ids(selectors.list_items(search="marimba"))) == {by_desc.item_id, by_remarks.item_id}
    assert _ids(selectors.list_items(search="quokka")) == [by_sloc.item_id]
    assert _ids(selectors.list_items(search="zephyr")) == [by_holder.item_id]
    assert by_desc.item_id in _ids(selectors.list_items(search=str(by_desc.item_id)))


def test_filters_by_location_and_holder():
    sloc = SlocFactory()
    holder = InventoryHolderFactory()
    here = ItemFactory(item_sloc=sloc, item_ih=holder)
    ItemFactory(item_sloc=sloc)
    ItemFactory(item_ih=holder)

    assert _ids(selectors.list_items(sloc_id=sloc.sloc_id, ih_id=holder.ih_id)) == [here.item_id]


def test_sorting_by_name_and_quantity():
    b = ItemFactory(item_desc="Bravo", item_qty=1)
    a = ItemFactory(item_desc="Alpha", item_qty=9)
    c = ItemFactory(item_desc="Charlie", item_qty=5)

    assert _ids(selectors.list_items(sort="name", asc=True)) == [a.item_id, b.item_id, c.item_id]
    assert _ids(selectors.list_items(sort="quantity")) == [a.item_id, c.item_id, b.item_id]
    assert _ids(selectors.list_items(sort="bogus")) == [c.item_id, a.item_id, b.item_id]


def test_catalogue_rows_carry_stock_and_primary_poc():
    holder = InventoryHolderFactory()
    poc = IHMemberFactory(ih=holder, is_primary=True).user
    IHMemberFactory(ih=holder)
    item = ItemFactory(item_qty=6, item_ih=holder)
    LoanItemDetailFactory(item=item, loan_qty=2, loan_status=LoanItemStatus.PENDING)
    LoanItemDetailFactory(item=item, loan_qty=1, loan_status=LoanItemStatus.ON_LOAN)

    [row] = selectors.catalogue_rows(selectors.list_items())

    assert row["primary_poc"] == poc
    assert row["stock"].pending == 2
    assert row["stock"].on_loan == 1
    assert row["stock"].total_qty == 7
    assert row["stock"].net_qty == 4


def test_get_item_returns_none_for_unknown_or_malformed_ids():
    item = ItemFactory()

    assert selectors.get_item(item.item_id) == item
    assert selectors.get_item(item.item_id + 1000) is None
    assert selectors.get_item("abc") is None
