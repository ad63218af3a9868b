import logging

from django.utils import timezone

from core_backend.context import TenantService
from core_backend.exceptions import ConflictError
from orders.models import Order
from tenant.managers import get_for_tenant
from .calculation_service import OrderCalculationService
from .status_service import derive_order_status

logger = logging.getLogger(__name__)


class OrderAggregateService(TenantService):
    """
    Shared plumbing for services that mutate an order aggregate.

    Callers are expected to be inside transaction.atomic(using=self.using);
    _lock_order re-reads the order row with SELECT ... FOR UPDATE.
    """

    def _orders(self):
        return Order.objects.using(self.using)

    def _lock_order(self, order_id, require_open=True) -> Order:
        order = get_for_tenant(
            self._orders().select_for_update(), self.tenant, order_id, "Order"
        )
        if require_open and order.is_closed:
            logger.warning(
                f"Rejected mutation of closed order {order.order_number} ({order.status})"
            )
            raise ConflictError(
                f"Order is {order.status.lower()} and can no longer be modified",
                code="order_closed",
            )
        return order

    def _items(self, order):
        return list(order.items.using(self.using).order_by("created_at"))

    def _refresh_kitchen_status(self, order, items):
        """
        Re-derive the kitchen-progress status after items changed.

        FOR_PAYMENT is kept: once money has been taken the order stays in
        the payment phase until it is settled, voided or new items reopen it.
        """
        if order.status == Order.OrderStatus.FOR_PAYMENT:
            return order.status
        order.status = derive_order_status(item.status for item in items)
        return order.status

    def _recalculate(self, order, items):
        return OrderCalculationService.recalculate_order_totals(
            order, items=items, using=self.using
        )

    def _save(self, order):
        order.updated_at = timezone.now()
        order.save(using=self.using)
        return order
