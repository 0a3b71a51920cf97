"""Seed logistics data for development sanity-check.

Creates storage locations, inventory holders, a few users, items and a
pair of sample loans. Re-running is idempotent; existing rows are reused by
slug, username or serial number, and sample loans are only added to an
empty loan table.
"""

import datetime as dt

from catalog.models import IHMember, InventoryHolder, Item, Sloc
from common.choices import IHType, UserRole
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone
from django.utils.text import slugify
from loans.models import LoanRequest
from loans.services import approve_loan, create_loan


class Command(BaseCommand):
    help = "Seed logistics data (locations, holders, users, items, sample loans)"

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write("Seeding logistics data...")
        User = get_user_model()

        slocs = {}
        for name in ("Main Store", "Band Room", "Sports Shed"):
            sloc, _ = Sloc.objects.get_or_create(sloc_id=slugify(name), defaults={"sloc_name": name})
            slocs[name] = sloc

        users = {}
        people = [
            ("admin", "Ada", "Admin", UserRole.ADMIN, "E0000001"),
            ("logs", "Lee", "Logs", UserRole.LOGS, "E0000002"),
            ("holder", "Ivy", "Holder", UserRole.IH, "E0000003"),
            ("member", "Rae", "Requester", UserRole.REQUESTER, "E0000004"),
        ]
        for username, first, last, role, nusnet in people:
            user, created = User.objects.get_or_create(
                username=username,
                defaults={
                    "first_name": first,
                    "last_name": last,
                    "role": role,
                    "nusnet_id": nusnet,
                    "telegram_handle": f"{username}_seed",
                },
            )
            if created:
                user.set_unusable_password()
                user.save(update_fields=["password"])
            users[username] = user

        logistics, _ = InventoryHolder.objects.get_or_create(
            ih_id="logistics", defaults={"ih_name": "Logistics", "ih_type": IHType.DEPARTMENT}
        )
        band, _ = InventoryHolder.objects.get_or_create(
            ih_id="band", defaults={"ih_name": "Band", "ih_type": IHType.GROUP}
        )
        IHMember.objects.get_or_create(user=users["logs"], ih=logistics, defaults={"is_primary": True})
        IHMember.objects.get_or_create(user=users["holder"], ih=band, defaults={"is_primary": True})

        items = [
            {"nusc_sn": "SEED-TABLE", "item_desc": "Folding Table", "item_uom": "PCS", "item_qty": 12,
             "sloc": "Main Store", "ih": logistics},
            {"nusc_sn": "SEED-MIC", "item_desc": "Wireless Microphone", "item_uom": "PCS", "item_qty": 4,
             "sloc": "Band Room", "ih": band},
            {"nusc_sn": "SEED-TAPE", "item_desc": "Duct Tape", "item_uom": "ROLL", "item_qty": 30,
             "sloc": "Main Store", "ih": logistics, "item_expendable": True},
            {"nusc_sn": "SEED-PIANO", "item_desc": "Grand Piano", "item_uom": "PCS", "item_qty": 1,
             "sloc": "Band Room", "ih": band, "item_unloanable": True},
        ]
        item_objs = {}
        for row in items:
            row = dict(row)
            sloc = slocs[row.pop("sloc")]
            holder = row.pop("ih")
            item, _ = Item.objects.get_or_create(
                nusc_sn=row["nusc_sn"],
                defaults={**row, "item_sloc": sloc, "item_ih": holder},
            )
            item_objs[item.nusc_sn] = item

        if not LoanRequest.objects.exists():
            now = timezone.now()
            actor = users["logs"]
            first = create_loan(
                actor,
                requester_id=users["member"].id,
                loan_date_start=now,
                loan_date_end=now + dt.timedelta(days=3),
                organisation="Seed Society",
                event_details="Welcome tea",
                items=[
                    {"item_id": item_objs["SEED-TABLE"].item_id, "loan_qty": 4},
                    {"item_id": item_objs["SEED-TAPE"].item_id, "loan_qty": 2},
                ],
            )
            second = create_loan(
                actor,
                requester_id=users["member"].id,
                loan_date_start=now + dt.timedelta(days=7),
                loan_date_end=now + dt.timedelta(days=8),
                organisation="Seed Society",
                items=[{"item_id": item_objs["SEED-MIC"].item_id, "loan_qty": 2}],
            )
            for result in (first, second):
                if not result:
                    raise CommandError(f"Failed to seed loan: {result.error}")
            approved = approve_loan(actor, first.data["ref_no"])
            if not approved:
                raise CommandError(f"Failed to approve seed loan: {approved.error}")

        self.stdout.write(self.style.SUCCESS("Logistics seed complete."))
