import logging

from django.db import transaction
from django.utils import timezone

from core_backend.exceptions import NoBillableItemsError
from orders.models import Order, OrderItem
from .base import OrderAggregateService
from .status_service import derive_order_status

logger = logging.getLogger(__name__)


class KitchenService(OrderAggregateService):
    """Service for kitchen hand-off of order items."""

    def send_to_kitchen(self, order_id) -> Order:
        """
        Send every NEW item of the order to the kitchen.

        sent_to_kitchen_at is stamped on the first send only. Sending always
        means the kitchen is working, so a derived OPEN is raised to
        IN_KITCHEN.
        """
        with transaction.atomic(using=self.using):
            order = self._lock_order(order_id)

            sent_count = (
                order.items.using(self.using)
                .filter(status=OrderItem.ItemStatus.NEW)
                .update(status=OrderItem.ItemStatus.SENT, updated_at=timezone.now())
            )

            items = self._items(order)
            if not any(item.is_billable for item in items):
                logger.warning(f"Send rejected: order {order.order_number} has no billable items")
                raise NoBillableItemsError()

            self._recalculate(order, items)
            if sent_count or order.status != Order.OrderStatus.FOR_PAYMENT:
                order.status = derive_order_status(item.status for item in items)
                if order.status == Order.OrderStatus.OPEN:
                    order.status = Order.OrderStatus.IN_KITCHEN
            if order.sent_to_kitchen_at is None:
                order.sent_to_kitchen_at = timezone.now()
            self._save(order)

        logger.info(
            f"Sent {sent_count} item(s) of order {order.order_number} to kitchen ({order.status})"
        )
        return order
