from typing import Optional
import logging

from django.db import transaction

from core_backend.exceptions import ConflictError, POSValidationError
from orders.models import Order, OrderItem
from products.models import Product
from tenant.managers import get_for_tenant
from .base import OrderAggregateService
from .status_service import is_legal_item_transition

logger = logging.getLogger(__name__)

# Adding food after the kitchen finished invalidates readiness.
REOPENING_STATUSES = (Order.OrderStatus.READY, Order.OrderStatus.FOR_PAYMENT)


def validate_quantity(quantity):
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise POSValidationError("Quantity must be a whole number", details={"field": "quantity"})
    if not OrderItem.MIN_QUANTITY <= quantity <= OrderItem.MAX_QUANTITY:
        raise POSValidationError(
            f"Quantity must be between {OrderItem.MIN_QUANTITY} and {OrderItem.MAX_QUANTITY}",
            details={"field": "quantity"},
        )


def validate_notes(notes):
    if notes is not None and len(notes) > OrderItem.MAX_NOTES_LENGTH:
        raise POSValidationError(
            f"Notes must be at most {OrderItem.MAX_NOTES_LENGTH} characters",
            details={"field": "notes"},
        )


class OrderItemService(OrderAggregateService):
    """Service for managing order items - adding and editing."""

    def add_item(self, order_id, product_id, quantity: int = 1, notes: str = "") -> Order:
        """
        Add a catalog product to an order.

        The product's name and price are copied onto the item; later catalog
        edits do not change it.
        """
        validate_quantity(quantity)
        validate_notes(notes)

        with transaction.atomic(using=self.using):
            order = self._lock_order(order_id)
            product = get_for_tenant(
                Product.objects.using(self.using).active(), self.tenant, product_id, "Product"
            )
            item = self._create_item(
                order,
                product=product,
                product_name=product.name,
                unit_price_cents=product.price_cents,
                quantity=quantity,
                notes=notes,
            )

        logger.info(f"Added {item.quantity} x {item.product_name} to order {order.order_number}")
        return order

    def add_custom_item(
        self, order_id, name: str, unit_price_cents: int, quantity: int = 1, notes: str = ""
    ) -> Order:
        """Add an off-menu item with an explicit name and price."""
        name = (name or "").strip()
        if not name:
            raise POSValidationError("Custom items need a name", details={"field": "name"})
        if isinstance(unit_price_cents, bool) or not isinstance(unit_price_cents, int) or unit_price_cents < 0:
            raise POSValidationError(
                "Unit price must be a non-negative whole number of cents",
                details={"field": "unit_price_cents"},
            )
        validate_quantity(quantity)
        validate_notes(notes)

        with transaction.atomic(using=self.using):
            order = self._lock_order(order_id)
            self._create_item(
                order,
                product=None,
                product_name=name[:200],
                unit_price_cents=unit_price_cents,
                quantity=quantity,
                notes=notes,
            )

        logger.info(f"Added custom item '{name}' to order {order.order_number}")
        return order

    def _create_item(self, order, **fields) -> OrderItem:
        item = OrderItem(tenant=self.tenant, order=order, **fields)
        item.notes = item.notes or ""
        item.save(using=self.using)

        items = self._items(order)
        self._recalculate(order, items)
        if order.status in REOPENING_STATUSES:
            logger.info(
                f"Order {order.order_number} reopened from {order.status} by a new item"
            )
            order.status = Order.OrderStatus.OPEN
        self._save(order)
        return item

    def patch_item(
        self,
        order_id,
        item_id,
        quantity: Optional[int] = None,
        notes: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Order:
        """
        Edit one item.

        Quantity and notes can only change while the item is NEW. Status
        moves forward through the kitchen sequence or to VOID; VOID items
        accept nothing but a repeated VOID.
        """
        if quantity is None and notes is None and status is None:
            raise POSValidationError("No changes provided")
        if quantity is not None:
            validate_quantity(quantity)
        validate_notes(notes)
        if status is not None and status not in OrderItem.ItemStatus.values:
            raise POSValidationError(f"'{status}' is not a valid item status", details={"field": "status"})

        with transaction.atomic(using=self.using):
            order = self._lock_order(order_id)
            item = get_for_tenant(
                OrderItem.objects.using(self.using).select_for_update().filter(order=order),
                self.tenant,
                item_id,
                "Order item",
            )

            if item.status == OrderItem.ItemStatus.VOID and status not in (None, OrderItem.ItemStatus.VOID):
                raise ConflictError("Voided items cannot be changed", code="item_void")

            if quantity is not None or notes is not None:
                if item.status != OrderItem.ItemStatus.NEW:
                    raise ConflictError(
                        "Only NEW items can be edited", code="item_not_editable"
                    )
                if quantity is not None:
                    item.quantity = quantity
                if notes is not None:
                    item.notes = notes

            if status is not None:
                if not is_legal_item_transition(item.status, status):
                    raise ConflictError(
                        f"Cannot move item from {item.status} to {status}",
                        code="illegal_item_transition",
                    )
                item.status = status

            item.save(using=self.using)

            items = self._items(order)
            if not any(line.is_billable for line in items):
                raise ConflictError(
                    "Cannot void the last billable item; cancel the order instead",
                    code="last_billable_item",
                )
            self._recalculate(order, items)
            self._refresh_kitchen_status(order, items)
            self._save(order)

        logger.info(f"Patched item {item.id} on order {order.order_number} (status={item.status})")
        return order
