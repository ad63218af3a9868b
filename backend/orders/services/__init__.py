"""
Orders services package - the order engine split into focused modules:
- OrderService: Core order lifecycle (create, read, cancel)
- OrderCalculationService: Tax and totals calculation
- OrderItemService: Item management (add, edit, void via status)
- KitchenService: Kitchen hand-off
- OrderDiscountService: Discount operations (delegates to discounts.services)
- VoidRefundService: Voids and refunds
- TipService: Tips
"""

from .calculation_service import OrderCalculationService, OrderTotals
from .status_service import derive_order_status
from .order_service import OrderQuery, OrderService
from .item_service import OrderItemService
from .kitchen_service import KitchenService
from .discount_service import OrderDiscountService
from .void_service import VoidRefundService
from .tip_service import TipService
from .table_service import TableService

__all__ = [
    'OrderCalculationService',
    'OrderTotals',
    'derive_order_status',
    'OrderQuery',
    'OrderService',
    'OrderItemService',
    'KitchenService',
    'OrderDiscountService',
    'VoidRefundService',
    'TipService',
    'TableService',
]
