from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import CashSessionViewSet

app_name = "cash_sessions"

router = DefaultRouter()
router.register(r"cash-sessions", CashSessionViewSet, basename="cash-session")

urlpatterns = [
    path("", include(router.urls)),
]
