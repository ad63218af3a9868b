from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional
import logging

from django.conf import settings
from django.db.models import Sum

from payments.money import apply_rate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderTotals:
    subtotal_cents: int
    discount_cents: int
    tax_cents: int
    total_cents: int


class OrderCalculationService:
    """Service for calculating order totals and taxes."""

    @staticmethod
    def effective_tax_rate(tenant) -> Decimal:
        """
        The single rate applied to an order recomputation.

        The tenant's configured rate wins; the project default covers tenants
        created without one.
        """
        if tenant is not None and tenant.tax_rate is not None:
            return Decimal(tenant.tax_rate)
        return Decimal(settings.POS_DEFAULT_TAX_RATE)

    @staticmethod
    def calculate_totals(items: Iterable, tax_rate, discount_cents: int = 0) -> OrderTotals:
        """
        Totals for a set of line items.

        VOID items are excluded. Tax is taken on the pre-discount subtotal and
        the total is floored at zero:

            total = max(0, subtotal - discount + tax)
        """
        subtotal = sum(
            item.unit_price_cents * item.quantity
            for item in items
            if item.status != "VOID"
        )
        tax = apply_rate(subtotal, tax_rate)
        total = max(0, subtotal - discount_cents + tax)
        return OrderTotals(
            subtotal_cents=subtotal,
            discount_cents=discount_cents,
            tax_cents=tax,
            total_cents=total,
        )

    @staticmethod
    def recalculate_order_totals(order, items: Optional[list] = None, using=None) -> OrderTotals:
        """
        Recompute and assign the money fields of an order (without saving).

        discount_cents is re-read as the sum of the order's applied discounts,
        so the two can never drift apart.
        """
        using = using or order._state.db
        if items is None:
            items = list(order.items.using(using).all())
        discount_cents = (
            order.applied_discounts.using(using).aggregate(total=Sum("amount_cents"))["total"]
            or 0
        )
        totals = OrderCalculationService.calculate_totals(
            items,
            OrderCalculationService.effective_tax_rate(order.tenant),
            discount_cents=discount_cents,
        )
        order.subtotal_cents = totals.subtotal_cents
        order.discount_cents = totals.discount_cents
        order.tax_cents = totals.tax_cents
        order.total_cents = totals.total_cents
        logger.debug(
            f"Recalculated order {order.order_number}: subtotal={totals.subtotal_cents} "
            f"discount={totals.discount_cents} tax={totals.tax_cents} total={totals.total_cents}"
        )
        return totals
