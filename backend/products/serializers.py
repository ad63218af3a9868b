from rest_framework import serializers

from core_backend.base import BaseModelSerializer, CentsField, FieldsetMixin
from .models import Category, Product


class CategorySerializer(BaseModelSerializer):
    parent_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = Category
        fields = ["id", "name", "parent_id", "order", "level", "status", "archived_at"]
        read_only_fields = fields


class CategoryCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    parent_id = serializers.UUIDField(required=False, allow_null=True)
    order = serializers.IntegerField(default=0)


class ProductSerializer(FieldsetMixin, BaseModelSerializer):
    category_id = serializers.UUIDField(read_only=True, allow_null=True)
    category_name = serializers.CharField(source="category.name", read_only=True, default=None)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "sku",
            "price_cents",
            "category_id",
            "category_name",
            "track_inventory",
            "status",
            "archived_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
        fieldsets = {
            "list": ["id", "name", "sku", "price_cents", "category_id", "category_name", "status"],
            "detail": "__all__",
        }


class ProductWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    price_cents = CentsField()
    category_id = serializers.UUIDField(required=False, allow_null=True)
    sku = serializers.CharField(max_length=64, required=False, allow_blank=True)
    track_inventory = serializers.BooleanField(required=False)


class ProductListParamsSerializer(serializers.Serializer):
    category_id = serializers.UUIDField(required=False)
