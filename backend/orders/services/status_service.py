"""
Kitchen-progress status derivation.

PAID and CANCELLED are set by explicit actions and never derived here.
"""

from typing import Iterable

from core_backend.exceptions import NoBillableItemsError
from orders.models import Order, OrderItem

ItemStatus = OrderItem.ItemStatus
OrderStatus = Order.OrderStatus

KITCHEN_ACTIVE = frozenset({ItemStatus.SENT.value, ItemStatus.IN_PROGRESS.value})
KITCHEN_DONE = frozenset({ItemStatus.READY.value, ItemStatus.SERVED.value})

# Item statuses advance in this order; VOID is reachable from any of them.
ITEM_STATUS_SEQUENCE = (
    ItemStatus.NEW.value,
    ItemStatus.SENT.value,
    ItemStatus.IN_PROGRESS.value,
    ItemStatus.READY.value,
    ItemStatus.SERVED.value,
)


def derive_order_status(item_statuses: Iterable[str]) -> str:
    """
    Map the statuses of an order's items to OPEN, IN_KITCHEN or READY.

    VOID items are ignored. Raises NoBillableItemsError when nothing
    billable remains. Served items count as ready; settlement is never
    implied by item progress.
    """
    billable = [status for status in item_statuses if status != ItemStatus.VOID]
    if not billable:
        raise NoBillableItemsError()

    if all(status == ItemStatus.NEW for status in billable):
        return OrderStatus.OPEN
    if all(status in KITCHEN_DONE for status in billable):
        return OrderStatus.READY
    if any(status in KITCHEN_ACTIVE for status in billable):
        return OrderStatus.IN_KITCHEN
    # Fresh items next to finished ones: the kitchen has unsent work.
    return OrderStatus.OPEN


def is_legal_item_transition(current: str, new: str) -> bool:
    """
    Items move forward through the kitchen sequence or to VOID.

    Re-setting the current status is allowed (no-op). Nothing leaves VOID.
    """
    if current == new:
        return True
    if current == ItemStatus.VOID:
        return False
    if new == ItemStatus.VOID:
        return True
    return ITEM_STATUS_SEQUENCE.index(new) > ITEM_STATUS_SEQUENCE.index(current)
