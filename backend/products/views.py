from rest_framework import status
from rest_framework.decorators import action

from core_backend.base import BaseViewSet
from core_backend.permissions import ReadOnlyOrManager
from .serializers import (
    CategoryCreateSerializer,
    CategorySerializer,
    ProductListParamsSerializer,
    ProductSerializer,
    ProductWriteSerializer,
)
from .services import CategoryService, ProductService


class ProductViewSet(BaseViewSet):
    """
    Catalog products. ?category_id= includes products in sub-categories.
    """

    serializer_class = ProductSerializer
    permission_classes = [ReadOnlyOrManager]
    http_method_names = ["get", "post", "patch", "head", "options"]

    def list(self, request):
        params = self.validated_input(ProductListParamsSerializer, data=request.query_params)
        products = self.get_service(ProductService).list_products(
            category_id=params.get("category_id"), include_archived=self.include_archived
        )
        return self.paginated(products)

    def retrieve(self, request, pk=None):
        return self.respond(self.get_service(ProductService).get_product(pk))

    def create(self, request):
        data = self.validated_input(ProductWriteSerializer)
        product = self.get_service(ProductService).create_product(**data)
        return self.respond(product, status_code=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        data = self.validated_input(ProductWriteSerializer, partial=True)
        return self.respond(self.get_service(ProductService).update_product(pk, **data))

    @action(detail=True, methods=["post"])
    def archive(self, request, pk=None):
        return self.respond(self.get_service(ProductService).archive_product(pk))


class CategoryViewSet(BaseViewSet):
    serializer_class = CategorySerializer
    permission_classes = [ReadOnlyOrManager]
    http_method_names = ["get", "post", "head", "options"]

    def list(self, request):
        return self.paginated(self.get_service(CategoryService).list_categories(self.include_archived))

    def create(self, request):
        data = self.validated_input(CategoryCreateSerializer)
        category = self.get_service(CategoryService).create_category(**data)
        return self.respond(category, status_code=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def archive(self, request, pk=None):
        return self.respond(self.get_service(CategoryService).archive_category(pk))
