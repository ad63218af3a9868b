from rest_framework import status
from rest_framework.decorators import action

from core_backend.base import BaseViewSet
from orders.serializers import TableCreateSerializer, TableSerializer
from orders.services import TableService


class TableViewSet(BaseViewSet):
    serializer_class = TableSerializer

    def list(self, request):
        return self.paginated(self.get_service(TableService).list_tables(self.include_archived))

    def create(self, request):
        data = self.validated_input(TableCreateSerializer)
        table = self.get_service(TableService).create_table(**data)
        return self.respond(table, status_code=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def archive(self, request, pk=None):
        return self.respond(self.get_service(TableService).archive_table(pk))
