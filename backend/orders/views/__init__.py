"""
Orders views package - service-backed viewsets.
"""

from .order_viewset import OrderViewSet
from .item_viewset import OrderDiscountViewSet, OrderItemViewSet
from .table_viewset import TableViewSet

__all__ = [
    "OrderDiscountViewSet",
    "OrderItemViewSet",
    "OrderViewSet",
    "TableViewSet",
]
