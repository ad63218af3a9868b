from rest_framework import serializers

from core_backend.base import BaseModelSerializer, CentsField
from .models import CashSession, ShiftSummary


class CashSessionSerializer(BaseModelSerializer):
    class Meta:
        model = CashSession
        fields = [
            "id",
            "status",
            "currency",
            "opening_cash_cents",
            "closing_cash_cents",
            "expected_cash_cents",
            "cash_difference_cents",
            "notes",
            "closing_notes",
            "opened_by",
            "closed_by",
            "opened_at",
            "closed_at",
        ]
        read_only_fields = fields


class OpenSessionSerializer(serializers.Serializer):
    opening_cash_cents = CentsField()
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class CloseSessionSerializer(serializers.Serializer):
    closing_cash_cents = CentsField()
    closing_notes = serializers.CharField(required=False, allow_blank=True, default="")


class SessionQueryParamsSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=CashSession.SessionStatus.choices, required=False)
    opened_from = serializers.DateTimeField(required=False)
    opened_to = serializers.DateTimeField(required=False)


class ShiftSummaryDataSerializer(serializers.Serializer):
    """Live summary computed on request; nothing is stored."""

    period_start = serializers.DateTimeField()
    period_end = serializers.DateTimeField()
    total_sales_cents = serializers.IntegerField()
    total_tax_cents = serializers.IntegerField()
    total_discount_cents = serializers.IntegerField()
    total_tips_cents = serializers.IntegerField()
    total_refunds_cents = serializers.IntegerField()
    cash_payments_cents = serializers.IntegerField()
    card_payments_cents = serializers.IntegerField()
    other_payments_cents = serializers.IntegerField()
    order_count = serializers.IntegerField()
    cancelled_order_count = serializers.IntegerField()
    item_count = serializers.IntegerField()
    void_count = serializers.IntegerField()
    average_order_cents = serializers.IntegerField()
    expected_cash_cents = serializers.IntegerField()


class ShiftSummarySerializer(BaseModelSerializer):
    cash_session_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = ShiftSummary
        exclude = ["tenant", "cash_session"]
