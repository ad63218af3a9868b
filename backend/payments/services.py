from dataclasses import dataclass, field
from typing import List, Optional
import logging

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from core_backend.exceptions import ConflictError, POSValidationError
from orders.models import Order
from orders.services.base import OrderAggregateService
from orders.services.calculation_service import OrderCalculationService
from tenant.managers import get_for_tenant
from .models import Payment
from .money import split_evenly, validate_minor_sum

logger = logging.getLogger(__name__)

MAX_SPLIT_PARTS = 20


@dataclass(frozen=True)
class PaymentResult:
    order: Order
    payment: Optional[Payment] = None
    change_due_cents: int = 0


@dataclass(frozen=True)
class SplitPlan:
    method: str
    total_cents: int
    outstanding_cents: int
    shares: List[int] = field(default_factory=list)


def captured_total_cents(order, using) -> int:
    return (
        order.payments.using(using)
        .filter(status=Payment.PaymentStatus.CAPTURED)
        .aggregate(total=Sum("amount_cents"))["total"]
        or 0
    )


class PaymentService(OrderAggregateService):
    """
    Settles orders by capturing payments against the outstanding balance.
    """

    def pay(self, order_id, provider: str, amount_cents: Optional[int] = None) -> PaymentResult:
        """
        Capture a payment against the order.

        Only the outstanding balance is ever captured. For cash, anything
        handed over beyond it is recorded as change due. The order becomes
        PAID once captured payments cover the total, FOR_PAYMENT otherwise.
        Paying an already PAID order returns it untouched.
        """
        if provider not in Payment.Provider.values:
            raise POSValidationError(f"'{provider}' is not a valid payment provider", details={"field": "provider"})
        if amount_cents is not None and (
            isinstance(amount_cents, bool) or not isinstance(amount_cents, int) or amount_cents < 1
        ):
            raise POSValidationError(
                "Amount must be a positive whole number of cents", details={"field": "amount_cents"}
            )

        with transaction.atomic(using=self.using):
            order = self._lock_order(order_id, require_open=False)
            if order.status == Order.OrderStatus.PAID:
                logger.info(f"Order {order.order_number} already paid; nothing to capture")
                return PaymentResult(order=order)
            if order.status == Order.OrderStatus.CANCELLED:
                raise ConflictError("Cannot pay a cancelled order", code="order_closed")

            self._recalculate(order, self._items(order))
            captured = captured_total_cents(order, self.using)
            outstanding = max(0, order.total_cents - captured)

            if outstanding <= 0:
                self._mark_paid(order)
                logger.info(f"Order {order.order_number} fully covered by existing payments")
                return PaymentResult(order=order)

            requested = amount_cents if amount_cents is not None else outstanding
            capture = min(requested, outstanding)
            change_due = 0
            payment = Payment(
                tenant=self.tenant,
                order=order,
                provider=provider,
                status=Payment.PaymentStatus.CAPTURED,
                amount_cents=capture,
                currency=order.currency,
                created_by=self.actor.user_id,
            )
            if provider == Payment.Provider.CASH:
                change_due = max(0, requested - outstanding)
                payment.received_cents = requested
                payment.change_due_cents = change_due
            payment.save(using=self.using)

            if captured + capture >= order.total_cents:
                self._mark_paid(order)
            else:
                order.status = Order.OrderStatus.FOR_PAYMENT
                self._save(order)

        logger.info(
            f"Captured {capture} ({provider}) on order {order.order_number}; "
            f"status={order.status} change_due={change_due}"
        )
        return PaymentResult(order=order, payment=payment, change_due_cents=change_due)

    def _mark_paid(self, order):
        order.status = Order.OrderStatus.PAID
        order.closed_at = timezone.now()
        self._save(order)

    def list_payments(self, order_id):
        order = get_for_tenant(self._orders(), self.tenant, order_id, "Order")
        return order.payments.using(self.using).order_by("created_at")

    def payment_history(self, provider: Optional[str] = None, status: Optional[str] = None):
        """All payments for the tenant, newest first."""
        payments = Payment.objects.using(self.using).for_tenant(self.tenant)
        if provider:
            payments = payments.filter(provider=provider)
        if status:
            payments = payments.filter(status=status)
        return payments.select_related("order").order_by("-created_at")

    def get_payment(self, payment_id) -> Payment:
        return get_for_tenant(Payment.objects.using(self.using), self.tenant, payment_id, "Payment")

    def plan_split(
        self,
        order_id,
        method: str,
        parts: Optional[int] = None,
        amounts: Optional[List[int]] = None,
    ) -> SplitPlan:
        """
        Work out how the outstanding balance divides between payers.

        "equal": parts equal shares, the first share takes the odd cents.
        "amount": explicit amounts that must add up to the outstanding balance.
        Nothing is written; each share is then paid with pay().
        """
        order = get_for_tenant(self._orders(), self.tenant, order_id, "Order")
        if order.is_closed:
            raise ConflictError(
                f"Order is {order.status.lower()} and can no longer be split", code="order_closed"
            )
        totals = OrderCalculationService.calculate_totals(
            list(order.items.using(self.using).all()),
            OrderCalculationService.effective_tax_rate(order.tenant),
            discount_cents=order.discount_cents,
        )
        outstanding = max(0, totals.total_cents - captured_total_cents(order, self.using))

        if method == "equal":
            if isinstance(parts, bool) or not isinstance(parts, int) or not 2 <= parts <= MAX_SPLIT_PARTS:
                raise POSValidationError(
                    f"Split into between 2 and {MAX_SPLIT_PARTS} parts", details={"field": "parts"}
                )
            shares = split_evenly(outstanding, parts)
        elif method == "amount":
            amounts = list(amounts or [])
            if len(amounts) < 2 or any(
                isinstance(amount, bool) or not isinstance(amount, int) or amount < 1
                for amount in amounts
            ):
                raise POSValidationError(
                    "Provide at least two positive amounts", details={"field": "amounts"}
                )
            try:
                validate_minor_sum(amounts, outstanding, context="for split payment")
            except ValueError as exc:
                raise POSValidationError(str(exc), details={"outstanding_cents": outstanding})
            shares = amounts
        else:
            raise POSValidationError(f"Unknown split method '{method}'", details={"field": "method"})

        return SplitPlan(
            method=method,
            total_cents=totals.total_cents,
            outstanding_cents=outstanding,
            shares=shares,
        )
