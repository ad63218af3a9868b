import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("tenant", "0001_initial"),
        ("products", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Discount",
            fields=[
                (
                    "status",
                    models.CharField(
                        choices=[("ACTIVE", "Active"), ("ARCHIVED", "Archived")],
                        db_index=True,
                        default="ACTIVE",
                        max_length=20,
                    ),
                ),
                ("archived_at", models.DateTimeField(blank=True, null=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                (
                    "code",
                    models.CharField(
                        blank=True,
                        help_text="Optional redemption code, stored uppercase (unique per tenant)",
                        max_length=50,
                        null=True,
                    ),
                ),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("PERCENTAGE", "Percentage"),
                            ("FIXED", "Fixed Amount"),
                            ("BOGO", "Buy One Get One"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "scope",
                    models.CharField(
                        choices=[
                            ("ORDER", "Entire Order"),
                            ("PRODUCT", "Specific Products"),
                            ("CATEGORY", "Specific Categories"),
                        ],
                        default="ORDER",
                        max_length=20,
                    ),
                ),
                (
                    "value",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Basis points for PERCENTAGE, minor units for FIXED. Not used for BOGO.",
                    ),
                ),
                (
                    "min_order_cents",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="The minimum order subtotal required for the discount to apply.",
                        null=True,
                    ),
                ),
                (
                    "start_date",
                    models.DateTimeField(
                        blank=True, help_text="The date and time when the discount becomes active.", null=True
                    ),
                ),
                (
                    "end_date",
                    models.DateTimeField(
                        blank=True, help_text="The date and time when the discount expires.", null=True
                    ),
                ),
                ("usage_count", models.PositiveIntegerField(default=0)),
                ("max_usage_count", models.PositiveIntegerField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "applicable_categories",
                    models.ManyToManyField(blank=True, related_name="discounts", to="products.category"),
                ),
                (
                    "applicable_products",
                    models.ManyToManyField(blank=True, related_name="discounts", to="products.product"),
                ),
                (
                    "tenant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="discounts",
                        to="tenant.tenant",
                    ),
                ),
            ],
            options={
                "ordering": ["name"],
                "indexes": [
                    models.Index(
                        fields=["tenant", "status", "start_date", "end_date"], name="discount_ten_window_idx"
                    ),
                    models.Index(fields=["tenant", "code"], name="discount_ten_code_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("code__isnull", False)),
                        fields=("tenant", "code"),
                        name="unique_discount_code_per_tenant",
                    )
                ],
            },
        ),
    ]
