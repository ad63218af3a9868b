from rest_framework import status
from rest_framework.decorators import action
from rest_framework.response import Response

from core_backend.base import BaseViewSet
from core_backend.permissions import ReadOnlyOrManager
from .serializers import (
    InventoryMovementSerializer,
    MovementCreateSerializer,
    MovementQueryParamsSerializer,
    MovementUpdateSerializer,
    StockAlertSerializer,
    StockItemSerializer,
    StockQueryParamsSerializer,
    StockSettingsSerializer,
    WarehouseSerializer,
    WarehouseWriteSerializer,
)
from .services import (
    InventoryMovementService,
    MovementLineInput,
    MovementQuery,
    StockService,
    WarehouseService,
)


class WarehouseViewSet(BaseViewSet):
    serializer_class = WarehouseSerializer
    permission_classes = [ReadOnlyOrManager]
    http_method_names = ["get", "post", "patch", "head", "options"]

    def list(self, request):
        return self.paginated(self.get_service(WarehouseService).list_warehouses(self.include_archived))

    def retrieve(self, request, pk=None):
        return self.respond(self.get_service(WarehouseService).get_warehouse(pk))

    def create(self, request):
        data = self.validated_input(WarehouseWriteSerializer)
        warehouse = self.get_service(WarehouseService).create_warehouse(**data)
        return self.respond(warehouse, status_code=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        data = self.validated_input(WarehouseWriteSerializer, partial=True)
        return self.respond(self.get_service(WarehouseService).update_warehouse(pk, **data))

    @action(detail=True, methods=["post"])
    def archive(self, request, pk=None):
        return self.respond(self.get_service(WarehouseService).archive_warehouse(pk))


class InventoryMovementViewSet(BaseViewSet):
    """
    Stock movement documents.

    Drafts can be edited and deleted; posting applies the stock deltas and
    cancelling a posted movement reverses them.
    """

    serializer_class = InventoryMovementSerializer
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def list(self, request):
        params = self.validated_input(MovementQueryParamsSerializer, data=request.query_params)
        movements = self.get_service(InventoryMovementService).list_movements(MovementQuery(**params))
        return self.paginated(movements)

    def retrieve(self, request, pk=None):
        return self.respond(self.get_service(InventoryMovementService).get_movement(pk))

    def create(self, request):
        data = dict(self.validated_input(MovementCreateSerializer))
        lines = [MovementLineInput(**line) for line in data.pop("lines")]
        movement = self.get_service(InventoryMovementService).create_movement(
            warehouse_id=data.pop("warehouse_id"),
            movement_type=data.pop("type"),
            lines=lines,
            **data,
        )
        return self.respond(movement, status_code=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        data = self.validated_input(MovementUpdateSerializer, partial=True)
        return self.respond(self.get_service(InventoryMovementService).update_movement(pk, **data))

    def destroy(self, request, pk=None):
        self.get_service(InventoryMovementService).delete_movement(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"], url_path="post")
    def post_movement(self, request, pk=None):
        return self.respond(self.get_service(InventoryMovementService).post_movement(pk))

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        return self.respond(self.get_service(InventoryMovementService).cancel_movement(pk))


class StockViewSet(BaseViewSet):
    serializer_class = StockItemSerializer

    def list(self, request):
        params = self.validated_input(StockQueryParamsSerializer, data=request.query_params)
        return self.paginated(self.get_service(StockService).stock_levels(**params))

    @action(detail=False, methods=["post"], url_path="settings")
    def stock_settings(self, request):
        data = self.validated_input(StockSettingsSerializer)
        return self.respond(self.get_service(StockService).set_stock_settings(**data))

    @action(detail=False, methods=["get"])
    def alerts(self, request):
        warehouse_id = self.validated_input(
            StockQueryParamsSerializer, data=request.query_params
        ).get("warehouse_id")
        alerts = self.get_service(StockService).low_stock_alerts(warehouse_id=warehouse_id)
        return Response(StockAlertSerializer(alerts, many=True).data)
