from rest_framework import serializers

from core_backend.base import BaseModelSerializer, CentsField, FieldsetMixin
from orders.models import DiningTable, Order, Tip, VoidRefund

from .discount_serializers import OrderDiscountSerializer
from .order_item_serializers import OrderItemSerializer


class OrderSerializer(FieldsetMixin, BaseModelSerializer):
    """
    Read representation of an order.

    The list view mode drops items and discounts; ?fields= narrows further.
    """

    table_id = serializers.UUIDField(read_only=True, allow_null=True)
    items = OrderItemSerializer(many=True, read_only=True)
    applied_discounts = OrderDiscountSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "table_id",
            "status",
            "subtotal_cents",
            "discount_cents",
            "tax_cents",
            "tip_cents",
            "total_cents",
            "currency",
            "notes",
            "opened_by",
            "opened_at",
            "sent_to_kitchen_at",
            "closed_at",
            "updated_at",
            "items",
            "applied_discounts",
        ]
        read_only_fields = fields
        fieldsets = {
            "list": [
                "id",
                "order_number",
                "table_id",
                "status",
                "subtotal_cents",
                "discount_cents",
                "tax_cents",
                "total_cents",
                "opened_at",
                "closed_at",
            ],
            "detail": "__all__",
        }
        required_fields = {"id"}


class OrderCreateSerializer(serializers.Serializer):
    table_id = serializers.UUIDField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class OrderListParamsSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.OrderStatus.choices, required=False)
    open_only = serializers.BooleanField(required=False, default=False)
    table_id = serializers.UUIDField(required=False)
    opened_from = serializers.DateTimeField(required=False)
    opened_to = serializers.DateTimeField(required=False)


class TableSerializer(BaseModelSerializer):
    class Meta:
        model = DiningTable
        fields = ["id", "name", "capacity", "status", "archived_at", "created_at"]
        read_only_fields = fields


class TableCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=50)
    capacity = serializers.IntegerField(min_value=1, max_value=100, default=4)


class TipSerializer(BaseModelSerializer):
    class Meta:
        model = Tip
        fields = ["id", "order", "amount_cents", "employee_id", "created_by", "created_at"]
        read_only_fields = fields


class AddTipSerializer(serializers.Serializer):
    amount_cents = CentsField(min_value=1)
    employee_id = serializers.UUIDField(required=False, allow_null=True)


class VoidRefundSerializer(BaseModelSerializer):
    item_ids = serializers.PrimaryKeyRelatedField(source="items", many=True, read_only=True)

    class Meta:
        model = VoidRefund
        fields = [
            "id",
            "order",
            "type",
            "reason",
            "amount_cents",
            "item_ids",
            "created_by",
            "approved_by",
            "created_at",
        ]
        read_only_fields = fields


class RecordVoidSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=VoidRefund.VoidType.choices)
    reason = serializers.CharField(max_length=500)
    amount_cents = CentsField(default=0)
    item_ids = serializers.ListField(child=serializers.UUIDField(), required=False, default=list)
