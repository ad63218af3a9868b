from typing import Iterable, Optional
import logging

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from core_backend.exceptions import ConflictError, POSValidationError
from orders.models import Order, OrderItem, VoidRefund
from payments.models import Payment
from .base import OrderAggregateService

logger = logging.getLogger(__name__)

VoidType = VoidRefund.VoidType


class VoidRefundService(OrderAggregateService):
    """
    Voids and refunds.

    Any staff role may void single items. Full voids and refunds need a
    manager, who is recorded as the approver.
    """

    def record(
        self,
        order_id,
        void_type: str,
        reason: str,
        amount_cents: int = 0,
        item_ids: Optional[Iterable] = None,
    ) -> VoidRefund:
        if void_type not in VoidType.values:
            raise POSValidationError(f"'{void_type}' is not a valid void type", details={"field": "type"})
        reason = (reason or "").strip()
        if not reason:
            raise POSValidationError("A reason is required", details={"field": "reason"})
        if isinstance(amount_cents, bool) or not isinstance(amount_cents, int) or amount_cents < 0:
            raise POSValidationError(
                "Amount must be a non-negative whole number of cents",
                details={"field": "amount_cents"},
            )
        if void_type != VoidType.ITEM_VOID:
            self.actor.require_manager(f"record a {void_type.lower().replace('_', ' ')}")

        with transaction.atomic(using=self.using):
            handler = {
                VoidType.ITEM_VOID: self._void_items,
                VoidType.VOID: self._void_order,
                VoidType.REFUND: self._refund,
                VoidType.PARTIAL_REFUND: self._refund,
            }[void_type]
            record = handler(order_id, void_type, reason, amount_cents, list(item_ids or []))

        logger.info(
            f"{record.get_type_display()} recorded on order {record.order.order_number} "
            f"({record.amount_cents}) by {self.actor.user_id}"
        )
        return record

    def _create_record(self, order, void_type, reason, amount_cents) -> VoidRefund:
        record = VoidRefund(
            tenant=self.tenant,
            order=order,
            type=void_type,
            reason=reason,
            amount_cents=amount_cents,
            created_by=self.actor.user_id,
            approved_by=self.actor.user_id if void_type != VoidType.ITEM_VOID else None,
        )
        record.save(using=self.using)
        return record

    def _void_items(self, order_id, void_type, reason, amount_cents, item_ids):
        if not item_ids:
            raise POSValidationError("Select at least one item to void", details={"field": "item_ids"})
        order = self._lock_order(order_id)
        items = list(
            OrderItem.objects.using(self.using)
            .select_for_update()
            .for_tenant(self.tenant)
            .filter(order=order, pk__in=item_ids)
        )
        if len(items) != len(set(str(item_id) for item_id in item_ids)):
            raise POSValidationError("One or more items were not found on this order")

        voided_total = 0
        for item in items:
            if item.status != OrderItem.ItemStatus.VOID:
                voided_total += item.line_total_cents
                item.status = OrderItem.ItemStatus.VOID
                item.save(using=self.using, update_fields=["status", "updated_at"])

        all_items = self._items(order)
        if not any(item.is_billable for item in all_items):
            raise ConflictError(
                "Cannot void every item; void the order instead", code="last_billable_item"
            )
        self._recalculate(order, all_items)
        self._refresh_kitchen_status(order, all_items)
        self._save(order)

        record = self._create_record(order, void_type, reason, amount_cents or voided_total)
        record.items.set(items)
        return record

    def _void_order(self, order_id, void_type, reason, amount_cents, item_ids):
        order = self._lock_order(order_id, require_open=False)
        if order.status == Order.OrderStatus.CANCELLED:
            raise ConflictError("Order is already cancelled", code="order_closed")

        if order.status != Order.OrderStatus.PAID:
            order.status = Order.OrderStatus.CANCELLED
            order.closed_at = timezone.now()
            self._save(order)
        return self._create_record(order, void_type, reason, amount_cents)

    def _refund(self, order_id, void_type, reason, amount_cents, item_ids):
        order = self._lock_order(order_id, require_open=False)
        if order.status != Order.OrderStatus.PAID:
            raise ConflictError("Only paid orders can be refunded", code="order_not_paid")

        captured = (
            order.payments.using(self.using)
            .filter(status=Payment.PaymentStatus.CAPTURED)
            .aggregate(total=Sum("amount_cents"))["total"]
            or 0
        )
        refunded = (
            order.void_refunds.using(self.using)
            .filter(type__in=[VoidType.REFUND, VoidType.PARTIAL_REFUND])
            .aggregate(total=Sum("amount_cents"))["total"]
            or 0
        )
        refundable = captured - refunded
        if void_type == VoidType.REFUND and amount_cents == 0:
            amount_cents = refundable
        if amount_cents <= 0 or amount_cents > refundable:
            raise ConflictError(
                f"Refund must be between 1 and {refundable} cents",
                code="refund_exceeds_captured",
                details={"refundable_cents": refundable},
            )
        return self._create_record(order, void_type, reason, amount_cents)
