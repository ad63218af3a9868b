from rest_framework import status
from rest_framework.decorators import action
from rest_framework.response import Response

from core_backend.base import BaseViewSet
from core_backend.permissions import ReadOnlyOrManager
from .serializers import DiscountSerializer, DiscountWriteSerializer
from .services import DiscountCatalogService


class DiscountViewSet(BaseViewSet):
    """
    The tenant's discount catalog.

    Staff may read; managers create, edit and archive. Applying a discount
    to an order happens under /orders/{id}/discounts/.
    """

    serializer_class = DiscountSerializer
    permission_classes = [ReadOnlyOrManager]
    http_method_names = ["get", "post", "patch", "head", "options"]

    def list(self, request):
        service = self.get_service(DiscountCatalogService)
        return self.paginated(service.list_discounts(self.include_archived))

    def retrieve(self, request, pk=None):
        return self.respond(self.get_service(DiscountCatalogService).get_discount(pk))

    def create(self, request):
        data = dict(self.validated_input(DiscountWriteSerializer))
        discount = self.get_service(DiscountCatalogService).create_discount(
            product_ids=data.pop("product_ids", ()),
            category_ids=data.pop("category_ids", ()),
            **data,
        )
        return self.respond(discount, status_code=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        data = dict(self.validated_input(DiscountWriteSerializer, partial=True))
        discount = self.get_service(DiscountCatalogService).update_discount(
            pk,
            product_ids=data.pop("product_ids", None),
            category_ids=data.pop("category_ids", None),
            **data,
        )
        return self.respond(discount)

    @action(detail=True, methods=["post"])
    def archive(self, request, pk=None):
        return self.respond(self.get_service(DiscountCatalogService).archive_discount(pk))

    @action(detail=False, methods=["get"])
    def available(self, request):
        discounts = self.get_service(DiscountCatalogService).available_discounts()
        return Response(self.get_serializer(discounts, many=True).data)
