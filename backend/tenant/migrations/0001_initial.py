import uuid
from decimal import Decimal

import django.core.validators
from django.db import migrations, models

import tenant.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Tenant",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(help_text="Display name for the tenant (e.g., Joe's Pizza)", max_length=255)),
                ("slug", models.SlugField(unique=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("ACTIVE", "Active"), ("SUSPENDED", "Suspended")],
                        default="ACTIVE",
                        help_text="Suspended tenants cannot access the system",
                        max_length=20,
                    ),
                ),
                ("currency", models.CharField(default=tenant.models.default_currency, max_length=3)),
                (
                    "tax_rate",
                    models.DecimalField(
                        decimal_places=4,
                        default=tenant.models.default_tax_rate,
                        help_text="Default tax rate as a fraction (0.05 = 5%)",
                        max_digits=6,
                        validators=[
                            django.core.validators.MinValueValidator(Decimal("0")),
                            django.core.validators.MaxValueValidator(Decimal("1")),
                        ],
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "tenants",
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["slug"], name="tenant_slug_idx"),
                    models.Index(fields=["status"], name="tenant_status_idx"),
                ],
            },
        ),
    ]
