import uuid

from django.db import models
from django.utils.translation import gettext_lazy as _

from core_backend.utils.archiving import ArchivableModel
from products.models import Product
from tenant.managers import TenantArchivableManager, TenantManager


class Warehouse(ArchivableModel):
    """
    A physical location where stock is kept.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='warehouses'
    )
    name = models.CharField(max_length=100)
    code = models.CharField(max_length=20)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantArchivableManager()

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "code"], name="unique_warehouse_code_per_tenant"
            )
        ]

    def __str__(self):
        return f"{self.name} ({self.code})"


class StockItem(models.Model):
    """
    Tracks the quantity of a specific product at a specific warehouse.

    on_hand only changes when a movement is posted or a posted movement is
    cancelled.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='stock_items'
    )
    warehouse = models.ForeignKey(
        Warehouse, on_delete=models.PROTECT, related_name="stock_items"
    )
    product = models.ForeignKey(
        Product, on_delete=models.PROTECT, related_name="stock_items"
    )
    on_hand = models.IntegerField(default=0, help_text=_("Quantity of stock on hand."))
    reserved = models.PositiveIntegerField(default=0)
    reorder_point = models.PositiveIntegerField(
        default=0,
        help_text=_("At or below this level the item is low on stock. 0 disables the alert."),
    )
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    class Meta:
        ordering = ["warehouse", "product"]
        constraints = [
            models.UniqueConstraint(
                fields=["warehouse", "product"], name="unique_stock_item_per_warehouse"
            )
        ]
        indexes = [
            models.Index(fields=["tenant", "product"], name="stock_ten_product_idx"),
        ]

    def __str__(self):
        return f"{self.product.name} at {self.warehouse.name}: {self.on_hand}"

    @property
    def available(self):
        return self.on_hand - self.reserved

    @property
    def is_low_stock(self):
        return self.reorder_point > 0 and self.on_hand <= self.reorder_point


class InventoryMovement(models.Model):
    """
    A stock document. Stock changes only on DRAFT -> POSTED and is reversed
    on POSTED -> CANCELLED.
    """

    class MovementType(models.TextChoices):
        RECEIPT = "RECEIPT", _("Receipt")
        DELIVERY = "DELIVERY", _("Delivery")
        ADJUSTMENT = "ADJUSTMENT", _("Adjustment")
        TRANSFER = "TRANSFER", _("Transfer")

    class MovementStatus(models.TextChoices):
        DRAFT = "DRAFT", _("Draft")
        POSTED = "POSTED", _("Posted")
        CANCELLED = "CANCELLED", _("Cancelled")

    REFERENCE_PREFIXES = {
        MovementType.RECEIPT: "REC",
        MovementType.DELIVERY: "DEL",
        MovementType.ADJUSTMENT: "ADJ",
        MovementType.TRANSFER: "TRF",
    }
    MAX_REFERENCE_LENGTH = 100

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='inventory_movements'
    )
    warehouse = models.ForeignKey(
        Warehouse, on_delete=models.PROTECT, related_name="movements"
    )
    destination_warehouse = models.ForeignKey(
        Warehouse,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="incoming_transfers",
        help_text=_("Receiving warehouse. Only used by transfers."),
    )
    type = models.CharField(max_length=20, choices=MovementType.choices)
    status = models.CharField(
        max_length=20, choices=MovementStatus.choices, default=MovementStatus.DRAFT
    )
    reference = models.CharField(max_length=MAX_REFERENCE_LENGTH)
    notes = models.TextField(blank=True)

    created_by = models.UUIDField(null=True, blank=True)
    posted_by = models.UUIDField(null=True, blank=True)
    cancelled_by = models.UUIDField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    posted_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    objects = TenantManager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["tenant", "status"], name="movement_ten_status_idx"),
            models.Index(fields=["tenant", "type"], name="movement_ten_type_idx"),
            models.Index(fields=["tenant", "warehouse"], name="movement_ten_wh_idx"),
        ]

    def __str__(self):
        return f"{self.reference} ({self.type}, {self.status})"


class InventoryMovementLine(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='inventory_movement_lines'
    )
    movement = models.ForeignKey(
        InventoryMovement, on_delete=models.CASCADE, related_name="lines"
    )
    product = models.ForeignKey(
        Product, on_delete=models.PROTECT, related_name="movement_lines"
    )
    # Signed for adjustments; receipts, deliveries and transfers use the magnitude.
    quantity = models.IntegerField()

    objects = TenantManager()

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"{self.quantity} x {self.product_id}"
