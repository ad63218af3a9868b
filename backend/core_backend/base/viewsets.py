from django.db import DEFAULT_DB_ALIAS
from rest_framework import status, viewsets
from rest_framework.response import Response

from ..pagination import StandardPagination


TRUTHY_PARAMS = ("true", "1", "yes")


class BaseViewSet(viewsets.GenericViewSet):
    """
    Base ViewSet for service-backed endpoints.

    Features:
    - Exposes the authenticated ActorContext as ``self.actor``
    - Builds tenant services with ``self.get_service(ServiceClass)``
    - Standard pagination and ``?include_archived=true`` handling
    - Read serializers receive ``view_mode`` and ``requested_fields`` context

    Usage:
        class WarehouseViewSet(BaseViewSet):
            serializer_class = WarehouseSerializer

            def list(self, request):
                service = self.get_service(WarehouseService)
                return self.paginated(service.list_warehouses(self.include_archived))
    """

    pagination_class = StandardPagination
    database_alias = DEFAULT_DB_ALIAS

    @property
    def actor(self):
        return self.request.user.context

    def get_service(self, service_class):
        return service_class(self.actor, using=self.database_alias)

    @property
    def include_archived(self) -> bool:
        return self.query_flag("include_archived")

    def query_flag(self, name: str) -> bool:
        return self.request.query_params.get(name, "").lower() in TRUTHY_PARAMS

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context["view_mode"] = "list" if self.action == "list" else "detail"
        fields = self.request.query_params.get("fields") if self.request else None
        if fields:
            context["requested_fields"] = {f.strip() for f in fields.split(",") if f.strip()}
        return context

    def validated_input(self, serializer_class, data=None, partial=False) -> dict:
        serializer = serializer_class(
            data=self.request.data if data is None else data,
            partial=partial,
            context=self.get_serializer_context(),
        )
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data

    def paginated(self, queryset, serializer_class=None):
        serializer_class = serializer_class or self.get_serializer_class()
        context = self.get_serializer_context()
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(serializer_class(page, many=True, context=context).data)
        return Response(serializer_class(queryset, many=True, context=context).data)

    def respond(self, instance, serializer_class=None, status_code=status.HTTP_200_OK):
        serializer_class = serializer_class or self.get_serializer_class()
        return Response(
            serializer_class(instance, context=self.get_serializer_context()).data,
            status=status_code,
        )
