import factory
from catalog.models import IHMember, InventoryHolder, Item, Sloc
from common.choices import IHType
from factory import Faker
from factory.django import DjangoModelFactory


class SlocFactory(DjangoModelFactory):
    class Meta:
        model = Sloc
        django_get_or_create = ("sloc_id",)

    sloc_id = factory.Sequence(lambda n: f"store-{n}")
    sloc_name = factory.LazyAttribute(lambda o: o.sloc_id.replace("-", " ").title())
    is_active = True


class InventoryHolderFactory(DjangoModelFactory):
    class Meta:
        model = InventoryHolder
        django_get_or_create = ("ih_id",)

    ih_id = factory.Sequence(lambda n: f"holder-{n}")
    ih_name = factory.LazyAttribute(lambda o: o.ih_id.replace("-", " ").title())
    ih_type = IHType.GROUP
    is_active = True


class IHMemberFactory(DjangoModelFactory):
    class Meta:
        model = IHMember

    user = factory.SubFactory("users.tests.factories.UserFactory")
    ih = factory.SubFactory(InventoryHolderFactory)
    is_primary = False


class ItemFactory(DjangoModelFactory):
    class Meta:
        model = Item

    item_desc = Faker("sentence", nb_words=2)
    item_uom = "PCS"
    item_qty = 5
    item_unloanable = False
    item_expendable = False
    item_sloc = factory.SubFactory(SlocFactory)
    item_ih = factory.SubFactory(InventoryHolderFactory)
    item_remarks = None
