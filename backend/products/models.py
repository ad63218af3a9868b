import uuid

from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _
from mptt.models import MPTTModel, TreeForeignKey

from core_backend.utils.archiving import ArchivableModel
from tenant.managers import TenantArchivableManager
from .managers import CategoryManager


class Category(MPTTModel, ArchivableModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(
        "tenant.Tenant",
        on_delete=models.CASCADE,
        related_name="categories",
    )
    name = models.CharField(max_length=100, help_text=_("Name of the product category."))
    parent = TreeForeignKey(
        "self",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="children",
        help_text=_("Parent category for creating a hierarchy."),
    )
    order = models.IntegerField(
        default=0,
        help_text=_("Display order for this category. Lower numbers appear first."),
    )

    objects = CategoryManager()

    class MPTTMeta:
        order_insertion_by = ["order", "name"]

    class Meta:
        verbose_name = _("Category")
        verbose_name_plural = _("Categories")
        ordering = ["order", "name"]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "parent", "name"],
                name="unique_category_name_per_parent",
            )
        ]
        indexes = [
            models.Index(fields=["tenant", "status"], name="category_ten_status_idx"),
        ]

    def __str__(self):
        return self.name


class Product(ArchivableModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(
        "tenant.Tenant",
        on_delete=models.CASCADE,
        related_name="products",
    )
    name = models.CharField(max_length=200, help_text=_("Name of the product."))
    sku = models.CharField(max_length=64, blank=True)
    price_cents = models.PositiveIntegerField(
        validators=[MinValueValidator(0)],
        help_text=_("Selling price in currency minor units."),
    )
    category = models.ForeignKey(
        Category,
        related_name="products",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        help_text=_("Product category. Leave blank for uncategorized products."),
    )
    track_inventory = models.BooleanField(
        default=False,
        help_text=_("Whether stock levels are tracked and alerted for this product."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantArchivableManager()

    class Meta:
        verbose_name = _("Product")
        verbose_name_plural = _("Products")
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "sku"],
                condition=~models.Q(sku=""),
                name="unique_sku_per_tenant",
            )
        ]
        indexes = [
            models.Index(fields=["tenant", "status"], name="product_ten_status_idx"),
            models.Index(fields=["tenant", "category"], name="product_ten_category_idx"),
        ]

    def __str__(self):
        return self.name
