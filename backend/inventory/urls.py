from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import InventoryMovementViewSet, StockViewSet, WarehouseViewSet

app_name = "inventory"

router = DefaultRouter()
router.register(r"warehouses", WarehouseViewSet, basename="warehouse")
router.register(r"movements", InventoryMovementViewSet, basename="movement")
router.register(r"stock", StockViewSet, basename="stock")

urlpatterns = [
    path("", include(router.urls)),
]
