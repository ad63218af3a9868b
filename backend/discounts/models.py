import uuid

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from core_backend.utils.archiving import ArchivableModel
from products.models import Category, Product
from tenant.managers import TenantArchivableManager


class Discount(ArchivableModel):
    class DiscountType(models.TextChoices):
        PERCENTAGE = "PERCENTAGE", "Percentage"
        FIXED = "FIXED", "Fixed Amount"
        BOGO = "BOGO", "Buy One Get One"

    class DiscountScope(models.TextChoices):
        ORDER = "ORDER", "Entire Order"
        PRODUCT = "PRODUCT", "Specific Products"
        CATEGORY = "CATEGORY", "Specific Categories"

    # 10000 basis points = 100%
    MAX_PERCENTAGE_BASIS_POINTS = 10000

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey('tenant.Tenant', on_delete=models.CASCADE, related_name='discounts')

    name = models.CharField(max_length=255)
    code = models.CharField(
        max_length=50, null=True, blank=True, help_text="Optional redemption code, stored uppercase (unique per tenant)"
    )
    type = models.CharField(
        max_length=20,
        choices=DiscountType.choices,
    )
    scope = models.CharField(
        max_length=20,
        choices=DiscountScope.choices,
        default=DiscountScope.ORDER,
    )
    value = models.PositiveIntegerField(
        default=0,
        help_text="Basis points for PERCENTAGE, minor units for FIXED. Not used for BOGO.",
    )

    min_order_cents = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="The minimum order subtotal required for the discount to apply.",
    )

    # For Product/Category specific discounts
    applicable_products = models.ManyToManyField(Product, blank=True, related_name="discounts")
    applicable_categories = models.ManyToManyField(Category, blank=True, related_name="discounts")

    start_date = models.DateTimeField(
        null=True,
        blank=True,
        help_text="The date and time when the discount becomes active.",
    )
    end_date = models.DateTimeField(
        null=True, blank=True, help_text="The date and time when the discount expires."
    )

    usage_count = models.PositiveIntegerField(default=0)
    max_usage_count = models.PositiveIntegerField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantArchivableManager()

    def is_currently_active(self, now=None):
        """Checks if the discount is active (not archived) and within its date range."""
        if not self.is_active:
            return False
        now = now or timezone.now()
        if self.start_date and now < self.start_date:
            return False
        if self.end_date and now > self.end_date:
            return False
        return True

    @property
    def usage_limit_reached(self):
        return self.max_usage_count is not None and self.usage_count >= self.max_usage_count

    def clean(self):
        """Validate discount value based on type."""
        super().clean()

        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError({
                'end_date': 'End date must be after the start date.'
            })

        if self.type == self.DiscountType.BOGO:
            return

        if self.value <= 0:
            raise ValidationError({
                'value': 'Discount value must be greater than zero.'
            })

        if (
            self.type == self.DiscountType.PERCENTAGE
            and self.value > self.MAX_PERCENTAGE_BASIS_POINTS
        ):
            raise ValidationError({
                'value': 'Percentage discount cannot exceed 100% (10000 basis points).'
            })

    def __str__(self):
        return f"{self.name} ({self.get_type_display()} on {self.get_scope_display()})"

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=['tenant', 'code'],
                name='unique_discount_code_per_tenant',
                condition=models.Q(code__isnull=False)
            ),
        ]
        indexes = [
            models.Index(fields=['tenant', 'status', 'start_date', 'end_date'], name="discount_ten_window_idx"),
            models.Index(fields=['tenant', 'code'], name="discount_ten_code_idx"),
        ]
