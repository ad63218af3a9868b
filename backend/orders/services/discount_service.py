import logging

from core_backend.context import TenantService
from orders.models import Order

logger = logging.getLogger(__name__)


class OrderDiscountService(TenantService):
    """Service for applying and removing discounts from orders."""

    def _core(self):
        # discounts.services imports this package; resolve it at call time.
        from discounts.services import DiscountService as CoreDiscountService

        return CoreDiscountService(self.actor, using=self.using)

    def apply_discount_by_id(self, order_id, discount_id) -> Order:
        """
        Applies a catalog discount to an order by DELEGATING to the DiscountService.
        """
        return self._core().apply_to_order(order_id, discount_id=discount_id)

    def apply_discount_by_code(self, order_id, code: str) -> Order:
        return self._core().apply_to_order(order_id, code=code)

    def apply_manual_discount(self, order_id, name: str, discount_type: str, value: int) -> Order:
        from discounts.services import ManualDiscount

        return self._core().apply_to_order(
            order_id, manual=ManualDiscount(name=name, type=discount_type, value=value)
        )

    def remove_discount(self, order_id, applied_discount_id) -> Order:
        return self._core().remove_from_order(order_id, applied_discount_id)
