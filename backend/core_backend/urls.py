"""
URL configuration for core_backend project.

Every /api/ route except the health check needs a gateway-issued bearer token.
"""

from django.urls import path, include

from .views import health_check, whoami


urlpatterns = [
    path("api/health/", health_check, name="health_check"),
    path("api/whoami/", whoami, name="whoami"),
    path("api/", include("products.urls")),
    path("api/", include("orders.urls")),
    path("api/", include("discounts.urls")),
    path("api/", include("payments.urls")),
    path("api/", include("cash_sessions.urls")),
    path("api/inventory/", include("inventory.urls")),
]
