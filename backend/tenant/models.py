import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _


def default_tax_rate():
    return settings.POS_DEFAULT_TAX_RATE


def default_currency():
    return settings.POS_DEFAULT_CURRENCY


class Tenant(models.Model):
    """
    Root entity for multi-tenancy.
    Each business running the POS is a tenant; every other row points at one.
    """

    class TenantStatus(models.TextChoices):
        ACTIVE = "ACTIVE", _("Active")
        SUSPENDED = "SUSPENDED", _("Suspended")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(
        max_length=255,
        help_text="Display name for the tenant (e.g., Joe's Pizza)"
    )
    slug = models.SlugField(unique=True)
    status = models.CharField(
        max_length=20,
        choices=TenantStatus.choices,
        default=TenantStatus.ACTIVE,
        help_text="Suspended tenants cannot access the system"
    )

    # Money settings used by every order recomputation
    currency = models.CharField(max_length=3, default=default_currency)
    tax_rate = models.DecimalField(
        max_digits=6,
        decimal_places=4,
        default=default_tax_rate,
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("1"))],
        help_text="Default tax rate as a fraction (0.05 = 5%)"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "tenants"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["slug"], name="tenant_slug_idx"),
            models.Index(fields=["status"], name="tenant_status_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.slug})"

    @property
    def is_active(self):
        return self.status == self.TenantStatus.ACTIVE
