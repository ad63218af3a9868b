from rest_framework import serializers

from core_backend.base import BaseModelSerializer, CentsField, FieldsetMixin
from .models import Discount


class DiscountSerializer(FieldsetMixin, BaseModelSerializer):
    """
    Read serializer for the discount catalog.

    Scope targets are rendered as id lists.
    """

    applicable_product_ids = serializers.PrimaryKeyRelatedField(
        source="applicable_products", many=True, read_only=True
    )
    applicable_category_ids = serializers.PrimaryKeyRelatedField(
        source="applicable_categories", many=True, read_only=True
    )

    class Meta:
        model = Discount
        fields = [
            "id",
            "name",
            "code",
            "type",
            "scope",
            "value",
            "min_order_cents",
            "applicable_product_ids",
            "applicable_category_ids",
            "start_date",
            "end_date",
            "usage_count",
            "max_usage_count",
            "status",
            "archived_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
        fieldsets = {
            "list": [
                "id", "name", "code", "type", "scope", "value",
                "status", "start_date", "end_date",
            ],
            "detail": "__all__",
        }


class DiscountWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    code = serializers.CharField(max_length=50, required=False, allow_null=True, allow_blank=True)
    type = serializers.ChoiceField(choices=Discount.DiscountType.choices)
    scope = serializers.ChoiceField(choices=Discount.DiscountScope.choices, default=Discount.DiscountScope.ORDER)
    value = serializers.IntegerField(min_value=0)
    min_order_cents = CentsField(required=False)
    start_date = serializers.DateTimeField(required=False, allow_null=True)
    end_date = serializers.DateTimeField(required=False, allow_null=True)
    max_usage_count = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    product_ids = serializers.ListField(child=serializers.UUIDField(), required=False)
    category_ids = serializers.ListField(child=serializers.UUIDField(), required=False)
