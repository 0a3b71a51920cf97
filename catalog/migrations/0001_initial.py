import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Sloc",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("sloc_id", models.SlugField(max_length=80, primary_key=True, serialize=False)),
                ("sloc_name", models.CharField(max_length=120)),
                ("is_active", models.BooleanField(db_index=True, default=True)),
            ],
            options={
                "ordering": ["sloc_name"],
            },
        ),
        migrations.CreateModel(
            name="InventoryHolder",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("ih_id", models.SlugField(max_length=80, primary_key=True, serialize=False)),
                ("ih_name", models.CharField(max_length=120)),
                (
                    "ih_type",
                    models.CharField(
                        choices=[("INDIVIDUAL", "Individual"), ("GROUP", "Group"), ("DEPARTMENT", "Department")],
                        default="INDIVIDUAL",
                        max_length=16,
                    ),
                ),
                ("is_active", models.BooleanField(db_index=True, default=True)),
            ],
            options={
                "ordering": ["ih_name"],
            },
        ),
        migrations.CreateModel(
            name="IHMember",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("is_primary", models.BooleanField(default=False)),
                (
                    "ih",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="memberships",
                        to="catalog.inventoryholder",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="ih_memberships",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-is_primary", "id"],
                "constraints": [
                    models.UniqueConstraint(fields=("user", "ih"), name="unique_ih_membership"),
                    models.UniqueConstraint(
                        condition=models.Q(("is_primary", True)),
                        fields=("ih",),
                        name="unique_primary_poc_per_ih",
                    ),
                ],
            },
        ),
        migrations.AddField(
            model_name="inventoryholder",
            name="members",
            field=models.ManyToManyField(
                related_name="holder_groups", through="catalog.IHMember", to=settings.AUTH_USER_MODEL
            ),
        ),
        migrations.CreateModel(
            name="Item",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("item_id", models.BigAutoField(primary_key=True, serialize=False)),
                ("nusc_sn", models.CharField(blank=True, max_length=64, null=True, unique=True)),
                ("item_desc", models.CharField(max_length=200)),
                ("item_uom", models.CharField(max_length=32)),
                ("item_qty", models.IntegerField(default=0)),
                ("item_unloanable", models.BooleanField(default=False)),
                ("item_expendable", models.BooleanField(default=False)),
                ("item_remarks", models.TextField(blank=True, null=True)),
                ("item_purchase_date", models.DateField(blank=True, null=True)),
                ("item_rfp_number", models.CharField(blank=True, max_length=64, null=True)),
                ("item_image", models.CharField(blank=True, max_length=500, null=True)),
                (
                    "item_ih",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="items",
                        to="catalog.inventoryholder",
                    ),
                ),
                (
                    "item_sloc",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="items",
                        to="catalog.sloc",
                    ),
                ),
            ],
            options={
                "ordering": ["-item_id"],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("item_qty__gte", 0)), name="item_qty_non_negative"),
                ],
            },
        ),
    ]
