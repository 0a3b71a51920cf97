from django.core.management.base import BaseCommand
from loans.selectors import overdue_lines


class Command(BaseCommand):
    help = "List loan lines still ON_LOAN after their request's end date."

    def handle(self, *args, **options):
        count = 0
        for line in overdue_lines():
            loan = line.loan_request
            self.stdout.write(
                f"#{loan.ref_no} line {line.loan_detail_id}: {line.loan_qty} x {line.item.item_desc} "
                f"due {loan.loan_date_end:%Y-%m-%d %H:%M} ({loan.requester.display_name})"
            )
            count += 1
        self.stdout.write(self.style.SUCCESS(f"Overdue loan lines: {count}"))
