"""
Orders serializers package - read models and action inputs.
"""

from .order_item_serializers import (
    AddItemSerializer,
    OrderItemSerializer,
    UpdateOrderItemSerializer,
)
from .order_serializers import (
    AddTipSerializer,
    OrderCreateSerializer,
    OrderListParamsSerializer,
    OrderSerializer,
    RecordVoidSerializer,
    TableCreateSerializer,
    TableSerializer,
    TipSerializer,
    VoidRefundSerializer,
)
from .discount_serializers import ApplyDiscountSerializer, OrderDiscountSerializer

__all__ = [
    "AddItemSerializer",
    "AddTipSerializer",
    "ApplyDiscountSerializer",
    "OrderCreateSerializer",
    "OrderDiscountSerializer",
    "OrderItemSerializer",
    "OrderListParamsSerializer",
    "OrderSerializer",
    "RecordVoidSerializer",
    "TableCreateSerializer",
    "TableSerializer",
    "TipSerializer",
    "VoidRefundSerializer",
]
