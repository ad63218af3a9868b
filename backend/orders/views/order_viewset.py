import logging

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.response import Response

from core_backend.base import BaseViewSet
from orders.serializers import (
    AddTipSerializer,
    OrderCreateSerializer,
    OrderListParamsSerializer,
    OrderSerializer,
    RecordVoidSerializer,
    TipSerializer,
    VoidRefundSerializer,
)
from orders.services import (
    KitchenService,
    OrderQuery,
    OrderService,
    TipService,
    VoidRefundService,
)
from payments.serializers import (
    PaymentResultSerializer,
    PaymentSerializer,
    PayOrderSerializer,
    SplitPlanRequestSerializer,
    SplitPlanSerializer,
)
from payments.services import PaymentService

logger = logging.getLogger(__name__)


class OrderViewSet(BaseViewSet):
    """
    Orders for the authenticated tenant.

    Reads return the order with items and applied discounts; every state
    change goes through the order services and returns the updated order.
    """

    serializer_class = OrderSerializer

    def list(self, request):
        params = self.validated_input(OrderListParamsSerializer, data=request.query_params)
        orders = self.get_service(OrderService).list_orders(OrderQuery(**params))
        return self.paginated(orders.prefetch_related("items", "applied_discounts"))

    def retrieve(self, request, pk=None):
        return self.respond(self.get_service(OrderService).get_order(pk))

    def create(self, request):
        data = self.validated_input(OrderCreateSerializer)
        order, created = self.get_service(OrderService).create_order(**data)
        return self.respond(order, status_code=status.HTTP_201_CREATED if created else status.HTTP_200_OK)

    @action(detail=True, methods=["post"], url_path="send")
    def send_to_kitchen(self, request, pk=None):
        return self.respond(self.get_service(KitchenService).send_to_kitchen(pk))

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        return self.respond(self.get_service(OrderService).cancel_order(pk))

    @action(detail=True, methods=["post"])
    def pay(self, request, pk=None):
        data = self.validated_input(PayOrderSerializer)
        result = self.get_service(PaymentService).pay(pk, **data)
        return Response(
            PaymentResultSerializer(result, context=self.get_serializer_context()).data,
            status=status.HTTP_201_CREATED if result.payment else status.HTTP_200_OK,
        )

    @action(detail=True, methods=["get"])
    def payments(self, request, pk=None):
        payments = self.get_service(PaymentService).list_payments(pk)
        return Response(PaymentSerializer(payments, many=True).data)

    @action(detail=True, methods=["post"], url_path="split-plan")
    def split_plan(self, request, pk=None):
        data = self.validated_input(SplitPlanRequestSerializer)
        plan = self.get_service(PaymentService).plan_split(pk, **data)
        return Response(SplitPlanSerializer(plan).data)

    @action(detail=True, methods=["post"])
    def tips(self, request, pk=None):
        data = self.validated_input(AddTipSerializer)
        tip = self.get_service(TipService).add_tip(pk, **data)
        return Response(TipSerializer(tip).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["get", "post"])
    def voids(self, request, pk=None):
        if request.method == "GET":
            order = self.get_service(OrderService).get_order(pk)
            return Response(VoidRefundSerializer(order.void_refunds.all(), many=True).data)

        data = self.validated_input(RecordVoidSerializer)
        record = self.get_service(VoidRefundService).record(
            pk,
            void_type=data["type"],
            reason=data["reason"],
            amount_cents=data["amount_cents"],
            item_ids=data["item_ids"],
        )
        return Response(VoidRefundSerializer(record).data, status=status.HTTP_201_CREATED)
