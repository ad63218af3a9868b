from typing import Optional
import logging

from django.db import transaction
from django.db.models import F

from core_backend.exceptions import ConflictError, POSValidationError
from orders.models import Order, Tip
from .base import OrderAggregateService

logger = logging.getLogger(__name__)


class TipService(OrderAggregateService):
    """Tips sit outside the order total and are tracked in tip_cents."""

    def add_tip(self, order_id, amount_cents: int, employee_id: Optional[str] = None) -> Tip:
        if isinstance(amount_cents, bool) or not isinstance(amount_cents, int) or amount_cents <= 0:
            raise POSValidationError(
                "Tip must be a positive whole number of cents", details={"field": "amount_cents"}
            )

        with transaction.atomic(using=self.using):
            order = self._lock_order(order_id, require_open=False)
            if order.status == Order.OrderStatus.CANCELLED:
                raise ConflictError("Cannot tip a cancelled order", code="order_closed")

            tip = Tip(
                tenant=self.tenant,
                order=order,
                amount_cents=amount_cents,
                employee_id=employee_id,
                created_by=self.actor.user_id,
            )
            tip.save(using=self.using)
            self._orders().filter(pk=order.pk).update(tip_cents=F("tip_cents") + amount_cents)

        logger.info(f"Tip of {amount_cents} added to order {order.order_number}")
        return tip
