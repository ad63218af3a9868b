from django.urls import path, include
from rest_framework import routers
from rest_framework_nested import routers as nested_routers
from .views import OrderDiscountViewSet, OrderItemViewSet, OrderViewSet, TableViewSet

app_name = "orders"

router = routers.DefaultRouter()
router.register(r"orders", OrderViewSet, basename="order")
router.register(r"tables", TableViewSet, basename="table")

orders_router = nested_routers.NestedSimpleRouter(router, r"orders", lookup="order")
orders_router.register(r"items", OrderItemViewSet, basename="order-item")
orders_router.register(r"discounts", OrderDiscountViewSet, basename="order-discount")

urlpatterns = [
    # Nested routes first for precedence.
    path("", include(orders_router.urls)),
    path("", include(router.urls)),
]
