from rest_framework import status

from core_backend.base import BaseViewSet
from orders.serializers import (
    AddItemSerializer,
    ApplyDiscountSerializer,
    OrderSerializer,
    UpdateOrderItemSerializer,
)
from orders.services import OrderDiscountService, OrderItemService


class OrderItemViewSet(BaseViewSet):
    """
    Items within one order, addressed as /orders/{order_pk}/items/.

    Both actions answer with the whole recalculated order.
    """

    serializer_class = OrderSerializer
    http_method_names = ["post", "patch", "head", "options"]

    def create(self, request, order_pk=None):
        data = self.validated_input(AddItemSerializer)
        service = self.get_service(OrderItemService)
        if "product_id" in data:
            order = service.add_item(
                order_pk, data["product_id"], quantity=data["quantity"], notes=data["notes"]
            )
        else:
            order = service.add_custom_item(
                order_pk,
                name=data["name"],
                unit_price_cents=data["unit_price_cents"],
                quantity=data["quantity"],
                notes=data["notes"],
            )
        return self.respond(order, status_code=status.HTTP_201_CREATED)

    def partial_update(self, request, order_pk=None, pk=None):
        data = self.validated_input(UpdateOrderItemSerializer)
        order = self.get_service(OrderItemService).patch_item(order_pk, pk, **data)
        return self.respond(order)


class OrderDiscountViewSet(BaseViewSet):
    """Discounts applied to one order, addressed as /orders/{order_pk}/discounts/."""

    serializer_class = OrderSerializer
    http_method_names = ["post", "delete", "head", "options"]

    def create(self, request, order_pk=None):
        data = self.validated_input(ApplyDiscountSerializer)
        service = self.get_service(OrderDiscountService)
        if "discount_id" in data:
            order = service.apply_discount_by_id(order_pk, data["discount_id"])
        elif "code" in data:
            order = service.apply_discount_by_code(order_pk, data["code"])
        else:
            order = service.apply_manual_discount(
                order_pk, name=data["name"], discount_type=data["type"], value=data["value"]
            )
        return self.respond(order, status_code=status.HTTP_201_CREATED)

    def destroy(self, request, order_pk=None, pk=None):
        return self.respond(self.get_service(OrderDiscountService).remove_discount(order_pk, pk))
