import re
import uuid

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import IntegrityError, models, transaction
from django.utils.translation import gettext_lazy as _

from core_backend.utils.archiving import ArchivableModel
from tenant.managers import TenantArchivableManager, TenantManager


class DiningTable(ArchivableModel):
    """A physical table orders can be bound to."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(
        "tenant.Tenant",
        on_delete=models.CASCADE,
        related_name="dining_tables",
    )
    name = models.CharField(max_length=50)
    capacity = models.PositiveSmallIntegerField(default=4)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantArchivableManager()

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "name"], name="unique_table_name_per_tenant"
            )
        ]

    def __str__(self):
        return self.name


class Order(models.Model):
    class OrderStatus(models.TextChoices):
        OPEN = "OPEN", _("Open")
        IN_KITCHEN = "IN_KITCHEN", _("In Kitchen")
        READY = "READY", _("Ready")
        FOR_PAYMENT = "FOR_PAYMENT", _("For Payment")
        PAID = "PAID", _("Paid")
        CANCELLED = "CANCELLED", _("Cancelled")

    # Statuses in which the order is still being worked on.
    OPEN_STATUSES = (
        OrderStatus.OPEN,
        OrderStatus.IN_KITCHEN,
        OrderStatus.READY,
        OrderStatus.FOR_PAYMENT,
    )
    TERMINAL_STATUSES = (OrderStatus.PAID, OrderStatus.CANCELLED)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(
        "tenant.Tenant",
        on_delete=models.CASCADE,
        related_name="orders",
    )
    order_number = models.CharField(max_length=20, blank=True)
    table = models.ForeignKey(
        DiningTable,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="orders",
    )
    status = models.CharField(
        max_length=20, choices=OrderStatus.choices, default=OrderStatus.OPEN
    )

    # Money, all in currency minor units
    subtotal_cents = models.PositiveIntegerField(default=0)
    discount_cents = models.PositiveIntegerField(default=0)
    tax_cents = models.PositiveIntegerField(default=0)
    tip_cents = models.PositiveIntegerField(default=0)
    total_cents = models.PositiveIntegerField(default=0)
    currency = models.CharField(max_length=3, default="USD")

    notes = models.TextField(blank=True)
    opened_by = models.UUIDField(null=True, blank=True)
    opened_at = models.DateTimeField(auto_now_add=True)
    sent_to_kitchen_at = models.DateTimeField(null=True, blank=True)
    closed_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    class Meta:
        ordering = ["-opened_at", "order_number"]
        indexes = [
            models.Index(fields=["tenant", "status"], name="order_ten_status_idx"),
            models.Index(fields=["tenant", "opened_at"], name="order_ten_opened_idx"),
            models.Index(fields=["tenant", "table", "status"], name="order_ten_table_status_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "order_number"],
                condition=~models.Q(order_number=""),
                name="unique_order_number_per_tenant",
            ),
            # At most one open-family order per table.
            models.UniqueConstraint(
                fields=["tenant", "table"],
                condition=models.Q(
                    status__in=["OPEN", "IN_KITCHEN", "READY", "FOR_PAYMENT"],
                    table__isnull=False,
                ),
                name="one_open_order_per_table",
            ),
        ]

    def __str__(self):
        return f"Order {self.order_number or self.id} ({self.get_status_display()})"

    @property
    def is_closed(self):
        return self.status in self.TERMINAL_STATUSES

    def save(self, *args, **kwargs):
        if self._state.adding and not self.order_number:
            using = kwargs.get("using") or self._state.db or "default"
            max_retries = 5
            for _attempt in range(max_retries):
                self.order_number = self._generate_sequential_order_number(using)
                try:
                    with transaction.atomic(using=using):
                        super().save(*args, **kwargs)
                    break
                except IntegrityError:
                    # Only a lost race on the number is worth another try.
                    taken = Order.objects.using(using).filter(
                        tenant_id=self.tenant_id, order_number=self.order_number
                    ).exists()
                    if not taken:
                        raise
            else:
                raise IntegrityError(
                    "Failed to generate a unique order number after multiple retries."
                )
        else:
            super().save(*args, **kwargs)

    def _generate_sequential_order_number(self, using):
        """
        Generates the next sequential order number for the tenant.

        Example: ORD-00001, ORD-00002, ORD-00003
        """
        prefix = "ORD-"
        last_order = (
            Order.objects.using(using)
            .filter(tenant_id=self.tenant_id, order_number__startswith=prefix)
            .order_by("-order_number")
            .first()
        )

        next_number = 1
        if last_order:
            match = re.match(rf"^{re.escape(prefix)}(\d+)$", last_order.order_number)
            if match:
                next_number = int(match.group(1)) + 1

        return f"{prefix}{next_number:05d}"


class OrderItem(models.Model):
    class ItemStatus(models.TextChoices):
        NEW = "NEW", _("New")
        SENT = "SENT", _("Sent to Kitchen")
        IN_PROGRESS = "IN_PROGRESS", _("In Progress")
        READY = "READY", _("Ready")
        SERVED = "SERVED", _("Served")
        VOID = "VOID", _("Void")

    MIN_QUANTITY = 1
    MAX_QUANTITY = 99
    MAX_NOTES_LENGTH = 500

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(
        "tenant.Tenant",
        on_delete=models.CASCADE,
        related_name="order_items",
    )
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.SET_NULL,
        related_name="order_items",
        null=True,
        blank=True,
        help_text=_("Product reference. Null for custom items."),
    )
    # Snapshots taken when the item is added; later catalog edits do not reach them.
    product_name = models.CharField(max_length=200)
    unit_price_cents = models.PositiveIntegerField()
    quantity = models.PositiveSmallIntegerField(
        default=1,
        validators=[MinValueValidator(MIN_QUANTITY), MaxValueValidator(MAX_QUANTITY)],
    )
    status = models.CharField(
        max_length=20, choices=ItemStatus.choices, default=ItemStatus.NEW
    )
    notes = models.CharField(max_length=MAX_NOTES_LENGTH, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["tenant", "order", "status"], name="item_ten_order_status_idx"),
        ]

    def __str__(self):
        return f"{self.quantity} x {self.product_name}"

    @property
    def is_billable(self):
        return self.status != self.ItemStatus.VOID

    @property
    def line_total_cents(self):
        return self.unit_price_cents * self.quantity


class AppliedDiscount(models.Model):
    """
    A discount applied to one order, with the amount frozen at apply time.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(
        "tenant.Tenant",
        on_delete=models.CASCADE,
        related_name="applied_discounts",
    )
    order = models.ForeignKey(
        Order, on_delete=models.CASCADE, related_name="applied_discounts"
    )
    discount = models.ForeignKey(
        "discounts.Discount",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="applications",
        help_text=_("Catalog entry. Null for manual discounts."),
    )
    name = models.CharField(max_length=200)
    type = models.CharField(max_length=20)
    value = models.PositiveIntegerField()
    amount_cents = models.PositiveIntegerField()
    applied_by = models.UUIDField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["order", "discount"],
                condition=models.Q(discount__isnull=False),
                name="unique_catalog_discount_per_order",
            )
        ]

    def __str__(self):
        return f"{self.name} on {self.order_id}"

    @property
    def is_manual(self):
        return self.discount_id is None


class VoidRefund(models.Model):
    """Audit record of a void or refund against an order."""

    class VoidType(models.TextChoices):
        VOID = "VOID", _("Void")
        REFUND = "REFUND", _("Refund")
        ITEM_VOID = "ITEM_VOID", _("Item Void")
        PARTIAL_REFUND = "PARTIAL_REFUND", _("Partial Refund")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(
        "tenant.Tenant",
        on_delete=models.CASCADE,
        related_name="void_refunds",
    )
    order = models.ForeignKey(
        Order, on_delete=models.CASCADE, related_name="void_refunds"
    )
    type = models.CharField(max_length=20, choices=VoidType.choices)
    reason = models.CharField(max_length=500)
    amount_cents = models.PositiveIntegerField(default=0)
    items = models.ManyToManyField(OrderItem, blank=True, related_name="void_records")
    created_by = models.UUIDField(null=True, blank=True)
    approved_by = models.UUIDField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["tenant", "created_at"], name="voidrefund_ten_created_idx"),
        ]

    def __str__(self):
        return f"{self.get_type_display()} on {self.order_id}"


class Tip(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(
        "tenant.Tenant",
        on_delete=models.CASCADE,
        related_name="tips",
    )
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="tips")
    amount_cents = models.PositiveIntegerField()
    employee_id = models.UUIDField(null=True, blank=True)
    created_by = models.UUIDField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        ordering = ["-created_at"]
