from rest_framework import serializers

from core_backend.base import BaseModelSerializer, CentsField, FieldsetMixin
from orders.serializers import OrderSerializer
from .models import Payment


class PaymentSerializer(FieldsetMixin, BaseModelSerializer):
    order_id = serializers.UUIDField(read_only=True)
    order_number = serializers.CharField(source="order.order_number", read_only=True)

    class Meta:
        model = Payment
        fields = [
            "id",
            "order_id",
            "order_number",
            "provider",
            "status",
            "amount_cents",
            "currency",
            "received_cents",
            "change_due_cents",
            "processor_reference",
            "created_by",
            "created_at",
        ]
        read_only_fields = fields
        fieldsets = {
            "list": ["id", "order_id", "order_number", "provider", "status", "amount_cents", "created_at"],
            "detail": "__all__",
        }


class PayOrderSerializer(serializers.Serializer):
    provider = serializers.ChoiceField(choices=Payment.Provider.choices)
    amount_cents = CentsField(min_value=1, required=False)


class PaymentResultSerializer(serializers.Serializer):
    order = OrderSerializer(read_only=True)
    payment = PaymentSerializer(read_only=True, allow_null=True)
    change_due_cents = serializers.IntegerField(read_only=True)


class SplitPlanRequestSerializer(serializers.Serializer):
    method = serializers.ChoiceField(choices=["equal", "amount"])
    parts = serializers.IntegerField(required=False, min_value=2)
    amounts = serializers.ListField(child=CentsField(min_value=1), required=False)


class SplitPlanSerializer(serializers.Serializer):
    method = serializers.CharField()
    total_cents = serializers.IntegerField()
    outstanding_cents = serializers.IntegerField()
    shares = serializers.ListField(child=serializers.IntegerField())


class PaymentHistoryParamsSerializer(serializers.Serializer):
    provider = serializers.ChoiceField(choices=Payment.Provider.choices, required=False)
    status = serializers.ChoiceField(choices=Payment.PaymentStatus.choices, required=False)
