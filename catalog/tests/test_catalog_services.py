import pytest
from catalog import services
from catalog.models import IHMember, InventoryHolder, Item, Sloc
from catalog.tests.factories import IHMemberFactory, InventoryHolderFactory, ItemFactory, SlocFactory
from common.choices import IHType, LoanItemStatus
from loans.tests.factories import LoanItemDetailFactory
from users.tests.factories import AdminUserFactory, LogsUserFactory, UserFactory

pytestmark = pytest.mark.django_db


def _item_fields(sloc, holder, **overrides):
    fields = {
        "item_desc": "Folding Table",
        "item_uom": "PCS",
        "item_qty": 3,
        "item_sloc": sloc.sloc_id,
        "item_ih": holder.ih_id,
    }
    fields.update(overrides)
    return fields


def test_create_item_trims_text_and_nulls_blank_optionals():
    sloc = SlocFactory()
    holder = InventoryHolderFactory()

    result = services.create_item(
        LogsUserFactory(),
        **_item_fields(sloc, holder, item_desc="  Folding Table ", item_remarks="   ", nusc_sn="", item_qty="4"),
    )

    assert result.success
    item = Item.objects.get(item_id=result.data["item_id"])
    assert item.item_desc == "Folding Table"
    assert item.item_remarks is None
    assert item.nusc_sn is None
    assert item.item_qty == 4
    assert item.item_sloc_id == sloc.sloc_id


def test_create_item_requires_logs_role():
    result = services.create_item(UserFactory(), **_item_fields(SlocFactory(), InventoryHolderFactory()))

    assert not result.success
    assert result.code == "forbidden"
    assert Item.objects.count() == 0


def test_create_item_collects_field_errors():
    sloc = SlocFactory()
    holder = InventoryHolderFactory()

    result = services.create_item(LogsUserFactory(), **_item_fields(sloc, holder, item_desc=" ", item_qty=-1))

    assert result.code == "invalid"
    assert set(result.errors) == {"item_desc", "item_qty"}


def test_create_item_rejects_inactive_location_and_duplicate_serial():
    loggie = LogsUserFactory()
    holder = InventoryHolderFactory()
    closed = SlocFactory(is_active=False)
    ItemFactory(nusc_sn="SN-1")

    moved = services.create_item(loggie, **_item_fields(closed, holder))
    dup = services.create_item(loggie, **_item_fields(SlocFactory(), holder, nusc_sn="SN-1"))

    assert moved.code == "not_found"
    assert dup.code == "conflict"
    assert Item.objects.count() == 1


def test_update_item_deletes_previous_image_after_commit(monkeypatch, django_capture_on_commit_callbacks):
    deleted = []
    monkeypatch.setattr(services, "delete_item_image", deleted.append)
    item = ItemFactory(item_image="/media/item-images/1-old.png")
    fields = _item_fields(item.item_sloc, item.item_ih, item_image="/media/item-images/2-new.png")

    with django_capture_on_commit_callbacks(execute=True):
        result = services.update_item(LogsUserFactory(), item.item_id, delete_previous_image=True, **fields)

    assert result.success
    assert deleted == ["/media/item-images/1-old.png"]
    item.refresh_from_db()
    assert item.item_image == "/media/item-images/2-new.png"


def test_update_item_keeps_image_without_flag(monkeypatch, django_capture_on_commit_callbacks):
    deleted = []
    monkeypatch.setattr(services, "delete_item_image", deleted.append)
    item = ItemFactory(item_image="/media/item-images/1-old.png")

    with django_capture_on_commit_callbacks(execute=True):
        result = services.update_item(LogsUserFactory(), item.item_id, **_item_fields(item.item_sloc, item.item_ih))

    assert result.success
    assert deleted == []


def test_update_unknown_item_is_not_found():
    result = services.update_item(LogsUserFactory(), 999999, **_item_fields(SlocFactory(), InventoryHolderFactory()))

    assert result.code == "not_found"


@pytest.mark.parametrize("status", [LoanItemStatus.PENDING, LoanItemStatus.ON_LOAN])
def test_delete_item_refused_while_lines_are_active(status):
    line = LoanItemDetailFactory(loan_status=status)

    result = services.delete_item(LogsUserFactory(), line.item_id)

    assert result.code == "conflict"
    assert "active or pending loans" in result.error
    assert Item.objects.filter(item_id=line.item_id).exists()


def test_delete_item_refused_with_loan_history():
    line = LoanItemDetailFactory(loan_status=LoanItemStatus.RETURNED)

    result = services.delete_item(LogsUserFactory(), line.item_id)

    assert result.code == "conflict"


def test_delete_item_removes_row_and_image(monkeypatch, django_capture_on_commit_callbacks):
    deleted = []
    monkeypatch.setattr(services, "delete_item_image", deleted.append)
    item = ItemFactory(item_image="/media/item-images/1-mic.png")

    with django_capture_on_commit_callbacks(execute=True):
        result = services.delete_item(LogsUserFactory(), item.item_id)

    assert result.success
    assert not Item.objects.filter(item_id=item.item_id).exists()
    assert deleted == ["/media/item-images/1-mic.png"]


def test_create_sloc_uses_slug_and_rejects_duplicates():
    loggie = LogsUserFactory()

    first = services.create_sloc(loggie, sloc_name="  Band Room ")
    again = services.create_sloc(loggie, sloc_name="band room")

    assert first.data == {"sloc_id": "band-room", "sloc_name": "Band Room"}
    assert again.code == "conflict"


def test_create_sloc_reactivates_inactive_location():
    SlocFactory(sloc_id="old-store", sloc_name="Old Store", is_active=False)

    result = services.create_sloc(LogsUserFactory(), sloc_name="Old Store")

    assert result.success
    assert Sloc.objects.get(sloc_id="old-store").is_active


def test_create_sloc_requires_a_usable_name():
    result = services.create_sloc(LogsUserFactory(), sloc_name="!!!")

    assert result.code == "invalid"


def test_deactivate_sloc_refused_while_in_use():
    item = ItemFactory()
    empty = SlocFactory()
    loggie = LogsUserFactory()

    busy = services.deactivate_sloc(loggie, item.item_sloc_id)
    done = services.deactivate_sloc(loggie, empty.sloc_id)

    assert busy.code == "conflict"
    assert busy.error == "Sloc is in use and cannot be deleted"
    assert done.success
    empty.refresh_from_db()
    assert not empty.is_active


def test_search_slocs_lists_active_matches_only():
    SlocFactory(sloc_id="main-store", sloc_name="Main Store")
    SlocFactory(sloc_id="side-store", sloc_name="Side Store", is_active=False)
    SlocFactory(sloc_id="shed", sloc_name="Shed")

    names = [s.sloc_name for s in services.search_slocs("store")]

    assert names == ["Main Store"]


def test_create_group_ih_needs_admin():
    denied = services.create_group_ih(LogsUserFactory(), ih_name="Dance Club")
    created = services.create_group_ih(AdminUserFactory(), ih_name="Dance Club")

    assert denied.code == "forbidden"
    assert created.data["ih_id"] == "dance-club"
    assert InventoryHolder.objects.get(ih_id="dance-club").ih_type == IHType.GROUP


def test_deactivate_ih_refused_while_in_use():
    item = ItemFactory()

    result = services.deactivate_ih(LogsUserFactory(), item.item_ih_id)

    assert result.code == "conflict"
    assert InventoryHolder.objects.get(ih_id=item.item_ih_id).is_active


def test_group_membership_lifecycle():
    admin = AdminUserFactory()
    holder = InventoryHolderFactory()
    first = UserFactory()
    second = UserFactory()

    assert services.add_user_to_group(admin, first.id, holder.ih_id, is_primary=True).success
    assert services.add_user_to_group(admin, second.id, holder.ih_id).success
    assert services.add_user_to_group(admin, second.id, holder.ih_id).code == "conflict"

    switched = services.set_primary_poc(admin, holder.ih_id, second.id)

    assert switched.success
    primaries = list(IHMember.objects.filter(ih=holder, is_primary=True).values_list("user_id", flat=True))
    assert primaries == [second.id]

    assert services.remove_user_from_group(admin, first.id, holder.ih_id).success
    assert services.remove_user_from_group(admin, first.id, holder.ih_id).code == "not_found"


def test_set_primary_poc_requires_membership():
    holder = InventoryHolderFactory()
    IHMemberFactory(ih=holder, is_primary=True)

    result = services.set_primary_poc(AdminUserFactory(), holder.ih_id, UserFactory().id)

    assert result.code == "conflict"
    assert IHMember.objects.filter(ih=holder, is_primary=True).count() == 1


def test_add_unknown_user_to_group_is_not_found():
    result = services.add_user_to_group(AdminUserFactory(), 987654, InventoryHolderFactory().ih_id)

    assert result.code == "not_found"


def test_malformed_ids_are_not_found():
    logs = LogsUserFactory()
    admin = AdminUserFactory()
    holder = InventoryHolderFactory()

    assert services.update_item(logs, "abc", **_item_fields(SlocFactory(), holder)).code == "not_found"
    assert services.delete_item(logs, "abc").code == "not_found"
    assert services.add_user_to_group(admin, "abc", holder.ih_id).code == "not_found"
    assert services.remove_user_from_group(admin, None, holder.ih_id).code == "not_found"
    assert services.set_primary_poc(admin, holder.ih_id, "abc").code == "not_found"
