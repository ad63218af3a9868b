from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Iterable, Set
import logging

from payments.money import apply_basis_points, round_half_up
from .models import Discount

logger = logging.getLogger(__name__)


class DiscountStrategy(ABC):
    """The interface for a discount strategy."""

    @abstractmethod
    def calculate(self, applicable_subtotal_cents: int, value: int) -> int:
        """Return the discount amount in minor units for the applicable subtotal."""


class PercentageDiscountStrategy(DiscountStrategy):
    """value is in basis points: 1000 = 10%."""

    def calculate(self, applicable_subtotal_cents: int, value: int) -> int:
        if applicable_subtotal_cents <= 0:
            return 0
        basis_points = min(value, Discount.MAX_PERCENTAGE_BASIS_POINTS)
        return apply_basis_points(applicable_subtotal_cents, basis_points)


class FixedAmountDiscountStrategy(DiscountStrategy):
    """Takes a fixed amount off, never more than the applicable subtotal."""

    def calculate(self, applicable_subtotal_cents: int, value: int) -> int:
        if applicable_subtotal_cents <= 0:
            return 0
        return min(value, applicable_subtotal_cents)


class BogoDiscountStrategy(DiscountStrategy):
    """
    Buy-one-get-one as half off the applicable subtotal.

    Items are not paired; this is the flat approximation the till has always used.
    """

    def calculate(self, applicable_subtotal_cents: int, value: int) -> int:
        if applicable_subtotal_cents <= 0:
            return 0
        return round_half_up(Decimal(applicable_subtotal_cents) / 2)


def applicable_subtotal_cents(
    items: Iterable,
    scope: str,
    product_ids: Set = frozenset(),
    category_ids: Set = frozenset(),
) -> int:
    """
    The part of the order's subtotal a discount may act on.

    ORDER scope takes every billable item. PRODUCT and CATEGORY scope keep
    only items whose product is listed (category ids should already include
    sub-categories). A scoped discount with empty lists falls back to the
    whole order.
    """
    billable = [item for item in items if item.status != "VOID"]

    if scope == Discount.DiscountScope.PRODUCT and product_ids:
        billable = [item for item in billable if item.product_id in product_ids]
    elif scope == Discount.DiscountScope.CATEGORY and category_ids:
        billable = [
            item for item in billable
            if item.product_id is not None and item.product.category_id in category_ids
        ]

    return sum(item.unit_price_cents * item.quantity for item in billable)
