import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="LoanRequest",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("ref_no", models.BigAutoField(primary_key=True, serialize=False)),
                ("loan_date_start", models.DateTimeField()),
                ("loan_date_end", models.DateTimeField()),
                ("organisation", models.CharField(blank=True, max_length=200, null=True)),
                ("event_details", models.TextField(blank=True, null=True)),
                ("event_location", models.CharField(blank=True, max_length=200, null=True)),
                (
                    "request_status",
                    models.CharField(
                        choices=[
                            ("PENDING", "Pending"),
                            ("ONGOING", "Ongoing"),
                            ("REJECTED", "Rejected"),
                            ("COMPLETED", "Completed"),
                        ],
                        db_index=True,
                        default="PENDING",
                        max_length=16,
                    ),
                ),
                (
                    "loggie",
                    models.ForeignKey(
                        blank=True,
                        help_text="Logistics member who approved or rejected the request",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="handled_loans",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "requester",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="loan_requests",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-ref_no"],
                "indexes": [
                    models.Index(fields=["requester", "request_status"], name="loan_requester_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("loan_date_end__gte", models.F("loan_date_start"))),
                        name="loan_dates_ordered",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="LoanItemDetail",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("loan_detail_id", models.BigAutoField(primary_key=True, serialize=False)),
                ("loan_qty", models.PositiveIntegerField()),
                (
                    "loan_status",
                    models.CharField(
                        choices=[
                            ("PENDING", "Pending"),
                            ("ON_LOAN", "On loan"),
                            ("RETURNED", "Returned"),
                            ("RETURNED_LATE", "Returned late"),
                            ("REJECTED", "Rejected"),
                        ],
                        default="PENDING",
                        max_length=16,
                    ),
                ),
                ("item_sloc_at_loan", models.CharField(blank=True, max_length=80)),
                ("item_ih_at_loan", models.CharField(blank=True, max_length=80)),
                ("returned_at", models.DateTimeField(blank=True, null=True)),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="loan_details",
                        to="catalog.item",
                    ),
                ),
                (
                    "loan_request",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="details",
                        to="loans.loanrequest",
                    ),
                ),
            ],
            options={
                "ordering": ["loan_detail_id"],
                "indexes": [
                    models.Index(fields=["item", "loan_status"], name="loan_detail_item_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("loan_qty__gte", 1)), name="loan_qty_positive"),
                ],
            },
        ),
    ]
