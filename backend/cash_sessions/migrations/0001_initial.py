import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("tenant", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="CashSession",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "status",
                    models.CharField(choices=[("OPEN", "Open"), ("CLOSED", "Closed")], default="OPEN", max_length=10),
                ),
                ("currency", models.CharField(default="USD", max_length=3)),
                ("opening_cash_cents", models.PositiveIntegerField()),
                ("closing_cash_cents", models.PositiveIntegerField(blank=True, null=True)),
                ("expected_cash_cents", models.PositiveIntegerField(blank=True, null=True)),
                ("cash_difference_cents", models.IntegerField(blank=True, null=True)),
                ("notes", models.TextField(blank=True)),
                ("closing_notes", models.TextField(blank=True)),
                ("opened_by", models.UUIDField(blank=True, null=True)),
                ("closed_by", models.UUIDField(blank=True, null=True)),
                ("opened_at", models.DateTimeField(auto_now_add=True)),
                ("closed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "tenant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="cash_sessions", to="tenant.tenant"
                    ),
                ),
            ],
            options={
                "ordering": ["-opened_at"],
                "indexes": [
                    models.Index(fields=["tenant", "status"], name="cash_sess_ten_status_idx"),
                    models.Index(fields=["tenant", "opened_at"], name="cash_sess_ten_opened_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status", "OPEN")),
                        fields=("tenant",),
                        name="one_open_cash_session_per_tenant",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="ShiftSummary",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("period_start", models.DateTimeField()),
                ("period_end", models.DateTimeField()),
                ("total_sales_cents", models.PositiveIntegerField(default=0)),
                ("total_tax_cents", models.PositiveIntegerField(default=0)),
                ("total_discount_cents", models.PositiveIntegerField(default=0)),
                ("total_tips_cents", models.PositiveIntegerField(default=0)),
                ("total_refunds_cents", models.PositiveIntegerField(default=0)),
                ("cash_payments_cents", models.PositiveIntegerField(default=0)),
                ("card_payments_cents", models.PositiveIntegerField(default=0)),
                ("other_payments_cents", models.PositiveIntegerField(default=0)),
                ("order_count", models.PositiveIntegerField(default=0)),
                ("cancelled_order_count", models.PositiveIntegerField(default=0)),
                ("item_count", models.PositiveIntegerField(default=0)),
                ("void_count", models.PositiveIntegerField(default=0)),
                ("average_order_cents", models.PositiveIntegerField(default=0)),
                ("expected_cash_cents", models.PositiveIntegerField(default=0)),
                ("created_by", models.UUIDField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "cash_session",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="summary",
                        to="cash_sessions.cashsession",
                    ),
                ),
                (
                    "tenant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="shift_summaries",
                        to="tenant.tenant",
                    ),
                ),
            ],
            options={
                "ordering": ["-period_start"],
            },
        ),
    ]
