from rest_framework import serializers

from core_backend.base import BaseModelSerializer, CentsField
from orders.models import OrderItem


class OrderItemSerializer(BaseModelSerializer):
    product_id = serializers.UUIDField(read_only=True, allow_null=True)
    line_total_cents = serializers.IntegerField(read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "product_name",
            "unit_price_cents",
            "quantity",
            "status",
            "notes",
            "line_total_cents",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class AddItemSerializer(serializers.Serializer):
    """
    Input for adding an item. Either a catalog product_id, or a custom
    item described by name and unit_price_cents.
    """

    product_id = serializers.UUIDField(required=False)
    name = serializers.CharField(required=False, max_length=200)
    unit_price_cents = CentsField(required=False)
    quantity = serializers.IntegerField(
        default=1, min_value=OrderItem.MIN_QUANTITY, max_value=OrderItem.MAX_QUANTITY
    )
    notes = serializers.CharField(
        required=False, allow_blank=True, default="", max_length=OrderItem.MAX_NOTES_LENGTH
    )

    def validate(self, data):
        is_custom = "name" in data or "unit_price_cents" in data
        if "product_id" in data and is_custom:
            raise serializers.ValidationError(
                "Send either product_id or a custom name and unit_price_cents, not both."
            )
        if "product_id" not in data:
            if "name" not in data or "unit_price_cents" not in data:
                raise serializers.ValidationError(
                    "Custom items need both name and unit_price_cents."
                )
        return data


class UpdateOrderItemSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(
        required=False, min_value=OrderItem.MIN_QUANTITY, max_value=OrderItem.MAX_QUANTITY
    )
    notes = serializers.CharField(
        required=False, allow_blank=True, max_length=OrderItem.MAX_NOTES_LENGTH
    )
    status = serializers.ChoiceField(choices=OrderItem.ItemStatus.choices, required=False)

    def validate(self, data):
        if not data:
            raise serializers.ValidationError("No changes provided.")
        return data
