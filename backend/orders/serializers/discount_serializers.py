from rest_framework import serializers

from core_backend.base import BaseModelSerializer
from discounts.models import Discount
from orders.models import AppliedDiscount


class OrderDiscountSerializer(BaseModelSerializer):
    discount_id = serializers.UUIDField(read_only=True, allow_null=True)
    is_manual = serializers.BooleanField(read_only=True)

    class Meta:
        model = AppliedDiscount
        fields = [
            "id",
            "discount_id",
            "name",
            "type",
            "value",
            "amount_cents",
            "is_manual",
            "applied_by",
            "created_at",
        ]
        read_only_fields = fields


class ApplyDiscountSerializer(serializers.Serializer):
    """
    Exactly one of: discount_id, code, or a manual discount
    (name + type + value).
    """

    discount_id = serializers.UUIDField(required=False)
    code = serializers.CharField(required=False, max_length=50)
    name = serializers.CharField(required=False, max_length=200)
    type = serializers.ChoiceField(
        choices=[Discount.DiscountType.PERCENTAGE, Discount.DiscountType.FIXED],
        required=False,
    )
    value = serializers.IntegerField(required=False, min_value=1)

    def validate(self, data):
        manual_fields = {"name", "type", "value"} & set(data)
        sources = sum(
            [
                "discount_id" in data,
                "code" in data,
                bool(manual_fields),
            ]
        )
        if sources != 1:
            raise serializers.ValidationError(
                "Provide exactly one of discount_id, code, or a manual discount."
            )
        if manual_fields and manual_fields != {"name", "type", "value"}:
            raise serializers.ValidationError(
                "Manual discounts need name, type and value."
            )
        return data
