from rest_framework import serializers

from core_backend.base import BaseModelSerializer, FieldsetMixin
from .models import InventoryMovement, InventoryMovementLine, StockItem, Warehouse


class WarehouseSerializer(BaseModelSerializer):
    class Meta:
        model = Warehouse
        fields = ["id", "name", "code", "status", "archived_at", "created_at", "updated_at"]
        read_only_fields = fields


class WarehouseWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    code = serializers.CharField(max_length=20)


class StockItemSerializer(BaseModelSerializer):
    warehouse_id = serializers.UUIDField(read_only=True)
    product_id = serializers.UUIDField(read_only=True)
    product_name = serializers.CharField(source="product.name", read_only=True)
    available = serializers.IntegerField(read_only=True)
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = StockItem
        fields = [
            "id",
            "warehouse_id",
            "product_id",
            "product_name",
            "on_hand",
            "reserved",
            "available",
            "reorder_point",
            "is_low_stock",
            "updated_at",
        ]
        read_only_fields = fields


class StockSettingsSerializer(serializers.Serializer):
    warehouse_id = serializers.UUIDField()
    product_id = serializers.UUIDField()
    reorder_point = serializers.IntegerField(required=False, min_value=0)
    reserved = serializers.IntegerField(required=False, min_value=0)


class StockQueryParamsSerializer(serializers.Serializer):
    warehouse_id = serializers.UUIDField(required=False)
    product_id = serializers.UUIDField(required=False)
    low_only = serializers.BooleanField(required=False, default=False)


class StockAlertSerializer(serializers.Serializer):
    severity = serializers.CharField()
    product_id = serializers.UUIDField()
    product_name = serializers.CharField()
    warehouse_id = serializers.UUIDField(allow_null=True)
    warehouse_name = serializers.CharField(allow_null=True)
    on_hand = serializers.IntegerField()
    available = serializers.IntegerField()
    reorder_point = serializers.IntegerField()
    deficit = serializers.IntegerField()


class MovementLineSerializer(BaseModelSerializer):
    product_id = serializers.UUIDField(read_only=True)
    product_name = serializers.CharField(source="product.name", read_only=True)

    class Meta:
        model = InventoryMovementLine
        fields = ["id", "product_id", "product_name", "quantity"]
        read_only_fields = fields


class InventoryMovementSerializer(FieldsetMixin, BaseModelSerializer):
    warehouse_id = serializers.UUIDField(read_only=True)
    destination_warehouse_id = serializers.UUIDField(read_only=True, allow_null=True)
    lines = MovementLineSerializer(many=True, read_only=True)

    class Meta:
        model = InventoryMovement
        fields = [
            "id",
            "reference",
            "type",
            "status",
            "warehouse_id",
            "destination_warehouse_id",
            "notes",
            "lines",
            "created_by",
            "posted_by",
            "cancelled_by",
            "created_at",
            "updated_at",
            "posted_at",
            "cancelled_at",
        ]
        read_only_fields = fields
        fieldsets = {
            "list": ["id", "reference", "type", "status", "warehouse_id", "destination_warehouse_id", "created_at"],
            "detail": "__all__",
        }


class MovementLineInputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField()


class MovementCreateSerializer(serializers.Serializer):
    warehouse_id = serializers.UUIDField()
    type = serializers.ChoiceField(choices=InventoryMovement.MovementType.choices)
    lines = MovementLineInputSerializer(many=True, allow_empty=False)
    reference = serializers.CharField(
        required=False, max_length=InventoryMovement.MAX_REFERENCE_LENGTH
    )
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    destination_warehouse_id = serializers.UUIDField(required=False, allow_null=True)
    post_immediately = serializers.BooleanField(required=False, default=False)


class MovementUpdateSerializer(serializers.Serializer):
    reference = serializers.CharField(
        required=False, max_length=InventoryMovement.MAX_REFERENCE_LENGTH
    )
    notes = serializers.CharField(required=False, allow_blank=True)


class MovementQueryParamsSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=InventoryMovement.MovementStatus.choices, required=False)
    type = serializers.ChoiceField(choices=InventoryMovement.MovementType.choices, required=False)
    warehouse_id = serializers.UUIDField(required=False)
