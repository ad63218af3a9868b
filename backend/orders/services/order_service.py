from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple
import logging

from django.db import IntegrityError, transaction
from django.utils import timezone

from core_backend.exceptions import ConflictError
from orders.models import DiningTable, Order
from payments.models import Payment
from tenant.managers import get_for_tenant
from .base import OrderAggregateService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderQuery:
    """Filters accepted by OrderService.list_orders."""

    status: Optional[str] = None
    open_only: bool = False
    table_id: Optional[str] = None
    opened_from: Optional[datetime] = None
    opened_to: Optional[datetime] = None


class OrderService(OrderAggregateService):
    """Core service for order lifecycle management - creating, reading, cancelling orders."""

    def get_order(self, order_id) -> Order:
        return get_for_tenant(self._orders(), self.tenant, order_id, "Order")

    def list_orders(self, query: OrderQuery = OrderQuery()):
        orders = self._orders().for_tenant(self.tenant)
        if query.status:
            orders = orders.filter(status=query.status)
        if query.open_only:
            orders = orders.filter(status__in=Order.OPEN_STATUSES)
        if query.table_id:
            orders = orders.filter(table_id=query.table_id)
        if query.opened_from:
            orders = orders.filter(opened_at__gte=query.opened_from)
        if query.opened_to:
            orders = orders.filter(opened_at__lt=query.opened_to)
        return orders.order_by("-opened_at")

    def create_order(self, table_id=None, notes: str = "") -> Tuple[Order, bool]:
        """
        Creates a new, empty order.

        When a table is given and it already has an order in the open family
        (OPEN, IN_KITCHEN, READY, FOR_PAYMENT), that order is returned
        instead of a duplicate.

        Returns:
            (order, created)
        """
        with transaction.atomic(using=self.using):
            table = None
            if table_id is not None:
                table = get_for_tenant(
                    DiningTable.objects.using(self.using).select_for_update().active(),
                    self.tenant,
                    table_id,
                    "Table",
                )
                existing = (
                    self._orders()
                    .for_tenant(self.tenant)
                    .filter(table=table, status__in=Order.OPEN_STATUSES)
                    .first()
                )
                if existing is not None:
                    logger.info(
                        f"Reusing open order {existing.order_number} for table {table.name}"
                    )
                    return existing, False

            try:
                order = Order(
                    tenant=self.tenant,
                    table=table,
                    currency=self.tenant.currency,
                    notes=notes or "",
                    opened_by=self.actor.user_id,
                )
                order.save(using=self.using)
            except IntegrityError:
                # Lost a race against another request opening the same table.
                raise ConflictError(
                    "Table already has an open order", code="table_has_open_order"
                )

        logger.info(f"Opened order {order.order_number} (table={table.name if table else '-'})")
        return order, True

    def cancel_order(self, order_id) -> Order:
        """
        Cancel an order that has not been paid.

        Orders with captured payments must be settled or voided instead.
        """
        with transaction.atomic(using=self.using):
            order = self._lock_order(order_id)
            has_payments = (
                order.payments.using(self.using)
                .filter(status=Payment.PaymentStatus.CAPTURED)
                .exists()
            )
            if has_payments:
                raise ConflictError(
                    "Order has captured payments; record a void instead of cancelling",
                    code="order_has_payments",
                )
            order.status = Order.OrderStatus.CANCELLED
            order.closed_at = timezone.now()
            self._save(order)

        logger.info(f"Order {order.order_number} cancelled")
        return order
