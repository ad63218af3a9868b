import uuid

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


LIFECYCLE_CHOICES = [("ACTIVE", "Active"), ("ARCHIVED", "Archived")]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("tenant", "0001_initial"),
        ("products", "0001_initial"),
        ("discounts", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="DiningTable",
            fields=[
                ("status", models.CharField(choices=LIFECYCLE_CHOICES, db_index=True, default="ACTIVE", max_length=20)),
                ("archived_at", models.DateTimeField(blank=True, null=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=50)),
                ("capacity", models.PositiveSmallIntegerField(default=4)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "tenant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="dining_tables", to="tenant.tenant"
                    ),
                ),
            ],
            options={
                "ordering": ["name"],
                "constraints": [
                    models.UniqueConstraint(fields=("tenant", "name"), name="unique_table_name_per_tenant")
                ],
            },
        ),
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("order_number", models.CharField(blank=True, max_length=20)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("OPEN", "Open"),
                            ("IN_KITCHEN", "In Kitchen"),
                            ("READY", "Ready"),
                            ("FOR_PAYMENT", "For Payment"),
                            ("PAID", "Paid"),
                            ("CANCELLED", "Cancelled"),
                        ],
                        default="OPEN",
                        max_length=20,
                    ),
                ),
                ("subtotal_cents", models.PositiveIntegerField(default=0)),
                ("discount_cents", models.PositiveIntegerField(default=0)),
                ("tax_cents", models.PositiveIntegerField(default=0)),
                ("tip_cents", models.PositiveIntegerField(default=0)),
                ("total_cents", models.PositiveIntegerField(default=0)),
                ("currency", models.CharField(default="USD", max_length=3)),
                ("notes", models.TextField(blank=True)),
                ("opened_by", models.UUIDField(blank=True, null=True)),
                ("opened_at", models.DateTimeField(auto_now_add=True)),
                ("sent_to_kitchen_at", models.DateTimeField(blank=True, null=True)),
                ("closed_at", models.DateTimeField(blank=True, null=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "table",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to="orders.diningtable",
                    ),
                ),
                (
                    "tenant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="orders", to="tenant.tenant"
                    ),
                ),
            ],
            options={
                "ordering": ["-opened_at", "order_number"],
                "indexes": [
                    models.Index(fields=["tenant", "status"], name="order_ten_status_idx"),
                    models.Index(fields=["tenant", "opened_at"], name="order_ten_opened_idx"),
                    models.Index(fields=["tenant", "table", "status"], name="order_ten_table_status_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("order_number", ""), _negated=True),
                        fields=("tenant", "order_number"),
                        name="unique_order_number_per_tenant",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(
                            ("status__in", ["OPEN", "IN_KITCHEN", "READY", "FOR_PAYMENT"]),
                            ("table__isnull", False),
                        ),
                        fields=("tenant", "table"),
                        name="one_open_order_per_table",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("product_name", models.CharField(max_length=200)),
                ("unit_price_cents", models.PositiveIntegerField()),
                (
                    "quantity",
                    models.PositiveSmallIntegerField(
                        default=1,
                        validators=[
                            django.core.validators.MinValueValidator(1),
                            django.core.validators.MaxValueValidator(99),
                        ],
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("NEW", "New"),
                            ("SENT", "Sent to Kitchen"),
                            ("IN_PROGRESS", "In Progress"),
                            ("READY", "Ready"),
                            ("SERVED", "Served"),
                            ("VOID", "Void"),
                        ],
                        default="NEW",
                        max_length=20,
                    ),
                ),
                ("notes", models.CharField(blank=True, max_length=500)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="items", to="orders.order"
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        blank=True,
                        help_text="Product reference. Null for custom items.",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="order_items",
                        to="products.product",
                    ),
                ),
                (
                    "tenant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="order_items", to="tenant.tenant"
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(fields=["tenant", "order", "status"], name="item_ten_order_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="AppliedDiscount",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=200)),
                ("type", models.CharField(max_length=20)),
                ("value", models.PositiveIntegerField()),
                ("amount_cents", models.PositiveIntegerField()),
                ("applied_by", models.UUIDField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "discount",
                    models.ForeignKey(
                        blank=True,
                        help_text="Catalog entry. Null for manual discounts.",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="applications",
                        to="discounts.discount",
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="applied_discounts",
                        to="orders.order",
                    ),
                ),
                (
                    "tenant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="applied_discounts",
                        to="tenant.tenant",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("discount__isnull", False)),
                        fields=("order", "discount"),
                        name="unique_catalog_discount_per_order",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="VoidRefund",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("VOID", "Void"),
                            ("REFUND", "Refund"),
                            ("ITEM_VOID", "Item Void"),
                            ("PARTIAL_REFUND", "Partial Refund"),
                        ],
                        max_length=20,
                    ),
                ),
                ("reason", models.CharField(max_length=500)),
                ("amount_cents", models.PositiveIntegerField(default=0)),
                ("created_by", models.UUIDField(blank=True, null=True)),
                ("approved_by", models.UUIDField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "items",
                    models.ManyToManyField(blank=True, related_name="void_records", to="orders.orderitem"),
                ),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="void_refunds", to="orders.order"
                    ),
                ),
                (
                    "tenant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="void_refunds", to="tenant.tenant"
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["tenant", "created_at"], name="voidrefund_ten_created_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Tip",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("amount_cents", models.PositiveIntegerField()),
                ("employee_id", models.UUIDField(blank=True, null=True)),
                ("created_by", models.UUIDField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="tips", to="orders.order"
                    ),
                ),
                (
                    "tenant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="tips", to="tenant.tenant"
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
