from core_backend.base import BaseViewSet
from .serializers import PaymentHistoryParamsSerializer, PaymentSerializer
from .services import PaymentService


class PaymentViewSet(BaseViewSet):
    """
    Read-only payment history. Payments are captured through
    POST /orders/{id}/pay/ and are never edited afterwards.
    """

    serializer_class = PaymentSerializer

    def list(self, request):
        params = self.validated_input(PaymentHistoryParamsSerializer, data=request.query_params)
        return self.paginated(self.get_service(PaymentService).payment_history(**params))

    def retrieve(self, request, pk=None):
        return self.respond(self.get_service(PaymentService).get_payment(pk))
