from rest_framework import status
from rest_framework.decorators import action
from rest_framework.response import Response

from core_backend.base import BaseViewSet
from .serializers import (
    CashSessionSerializer,
    CloseSessionSerializer,
    OpenSessionSerializer,
    SessionQueryParamsSerializer,
    ShiftSummaryDataSerializer,
    ShiftSummarySerializer,
)
from .services import CashSessionQuery, CashSessionService, ShiftSummaryService


class CashSessionViewSet(BaseViewSet):
    """
    Cash drawer sessions. One session per tenant may be open at a time.
    """

    serializer_class = CashSessionSerializer

    def list(self, request):
        params = self.validated_input(SessionQueryParamsSerializer, data=request.query_params)
        sessions = self.get_service(CashSessionService).list_sessions(CashSessionQuery(**params))
        return self.paginated(sessions)

    def retrieve(self, request, pk=None):
        return self.respond(self.get_service(CashSessionService).get_session(pk))

    def create(self, request):
        data = self.validated_input(OpenSessionSerializer)
        session = self.get_service(CashSessionService).open_session(**data)
        return self.respond(session, status_code=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"])
    def current(self, request):
        session = self.get_service(CashSessionService).current_session()
        if session is None:
            return Response(None)
        return self.respond(session)

    @action(detail=True, methods=["post"])
    def close(self, request, pk=None):
        data = self.validated_input(CloseSessionSerializer)
        return self.respond(self.get_service(CashSessionService).close_session(pk, **data))

    @action(detail=True, methods=["get", "post"])
    def summary(self, request, pk=None):
        service = self.get_service(ShiftSummaryService)
        if request.method == "POST":
            snapshot = service.save_snapshot(pk)
            return Response(ShiftSummarySerializer(snapshot).data, status=status.HTTP_201_CREATED)
        return Response(ShiftSummaryDataSerializer(service.summarize(pk)).data)
